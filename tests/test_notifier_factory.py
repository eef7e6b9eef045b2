"""Tests for the notifier factory."""

from unittest.mock import patch

import pytest

from src.adapters.notifier_factory import NullNotifier, create_notifier
from src.ports.notification_port import PERMISSION_DENIED


class TestCreateNotifier:
    @patch("src.adapters.notifier_factory.settings")
    def test_returns_null_notifier(self, mock_settings):
        mock_settings.NOTIFICATION_PROVIDER = "none"
        assert isinstance(create_notifier(), NullNotifier)

    @patch("src.adapters.notifier_factory.settings")
    def test_returns_telegram_notifier(self, mock_settings):
        mock_settings.NOTIFICATION_PROVIDER = "telegram"
        mock_settings.TELEGRAM_BOT_TOKEN = "123456:ABC-fake"
        mock_settings.NOTIFY_CHAT_IDS = [111]
        notifier = create_notifier()
        from src.adapters.telegram_notifier import TelegramNotifier
        assert isinstance(notifier, TelegramNotifier)
        assert notifier._chat_ids == [111]

    @patch("src.adapters.notifier_factory.settings")
    def test_case_insensitive(self, mock_settings):
        mock_settings.NOTIFICATION_PROVIDER = "None"
        assert isinstance(create_notifier(), NullNotifier)

    @patch("src.adapters.notifier_factory.settings")
    def test_unknown_provider_raises(self, mock_settings):
        mock_settings.NOTIFICATION_PROVIDER = "pigeon"
        with pytest.raises(ValueError, match="Unknown NOTIFICATION_PROVIDER"):
            create_notifier()


class TestNullNotifier:
    @pytest.mark.asyncio
    async def test_always_denied(self):
        assert await NullNotifier().request_permission() == PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_notify_is_silent(self):
        await NullNotifier().notify("t", "b", "tag")
