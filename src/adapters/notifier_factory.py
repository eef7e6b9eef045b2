"""Notifier factory — creates the right notification adapter based on config."""

from __future__ import annotations

import logging

from src.config import settings
from src.ports.notification_port import PERMISSION_DENIED, NotificationPort

logger = logging.getLogger(__name__)


class NullNotifier:
    """NotificationPort for environments without any alert channel."""

    async def request_permission(self) -> str:
        return PERMISSION_DENIED

    async def notify(self, title: str, body: str, tag: str) -> None:
        logger.debug("Notification %s dropped (no provider)", tag)


def create_notifier() -> NotificationPort:
    """Return the notifier matching the NOTIFICATION_PROVIDER setting."""
    provider = settings.NOTIFICATION_PROVIDER.lower()

    if provider == "telegram":
        from telegram import Bot

        from src.adapters.telegram_notifier import TelegramNotifier

        return TelegramNotifier(Bot(settings.TELEGRAM_BOT_TOKEN), settings.NOTIFY_CHAT_IDS)

    if provider in ("none", ""):
        return NullNotifier()

    raise ValueError(f"Unknown NOTIFICATION_PROVIDER: {provider!r}")
