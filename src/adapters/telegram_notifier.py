"""Telegram notification adapter — implements NotificationPort.

Wraps a telegram.Bot instance and fans each alert out to the configured chats.
"""

from __future__ import annotations

import logging

from telegram import Bot
from telegram.error import TelegramError

from src.ports.notification_port import PERMISSION_DENIED, PERMISSION_GRANTED

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot, chat_ids: list[int]) -> None:
        self._bot = bot
        self._chat_ids = list(chat_ids)

    async def request_permission(self) -> str:
        """Granted only with at least one chat and a token Telegram accepts."""
        if not self._chat_ids:
            logger.warning("Telegram notifier has no NOTIFY_CHAT_IDS configured")
            return PERMISSION_DENIED
        try:
            me = await self._bot.get_me()
        except TelegramError as exc:
            logger.warning("Telegram bot token rejected: %s", exc)
            return PERMISSION_DENIED
        logger.info("Telegram notifications via @%s to %d chat(s)", me.username, len(self._chat_ids))
        return PERMISSION_GRANTED

    async def notify(self, title: str, body: str, tag: str) -> None:
        text = f"{title}\n\n{body}"
        for chat_id in self._chat_ids:
            try:
                await self._bot.send_message(chat_id=chat_id, text=text)
            except TelegramError as exc:
                logger.error("Failed to send %s to chat %d: %s", tag, chat_id, exc)
