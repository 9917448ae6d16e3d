"""Notification delivery for the parking monitor."""

from __future__ import annotations

import logging
from typing import Optional

from telegram import Bot
from telegram.error import TelegramError

from infrastructure.errors import DeliveryError
from infrastructure.settings import MonitorSettings

# Telegram rejects messages longer than 4096 characters
MAX_MESSAGE_LENGTH = 4096


def compose_message(subject: str, body: str) -> str:
    """Join subject and body into a single chat message."""
    text = f"{subject}\n\n{body}" if body else subject
    if len(text) > MAX_MESSAGE_LENGTH:
        text = text[: MAX_MESSAGE_LENGTH - 1] + "…"
    return text


class TelegramNotifier:
    """Send monitor notifications to a Telegram chat."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        *,
        bot: Optional[Bot] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not bot_token and bot is None:
            raise ValueError("A Telegram bot token is required")
        self.chat_id = chat_id
        self.logger = logger or logging.getLogger("TelegramNotifier")
        self._bot = bot or Bot(token=bot_token)
        self._initialized = False

    async def dispatch(self, subject: str, body: str) -> None:
        text = compose_message(subject, body)
        try:
            if not self._initialized:
                await self._bot.initialize()
                self._initialized = True
            await self._bot.send_message(chat_id=self.chat_id, text=text)
        except TelegramError as exc:
            raise DeliveryError(f"Telegram delivery failed for {subject!r}: {exc}") from exc

        self.logger.debug("Sent notification to %s: %s", self.chat_id, text[:50])

    async def close(self) -> None:
        if self._initialized:
            await self._bot.shutdown()
            self._initialized = False


class LoggingNotifier:
    """Fallback notifier that only writes notifications to the log."""

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("LoggingNotifier")

    async def dispatch(self, subject: str, body: str) -> None:
        self.logger.info("📧 %s", compose_message(subject, body))

    async def close(self) -> None:
        return None


def build_notifier(settings: MonitorSettings, *, logger: Optional[logging.Logger] = None):
    """Return a Telegram notifier when credentials are configured, else a logging one."""

    if settings.telegram_enabled:
        return TelegramNotifier(settings.bot_token, settings.chat_id, logger=logger)

    (logger or logging.getLogger("TelegramNotifier")).warning(
        "TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID not configured - notifications will only be logged"
    )
    return LoggingNotifier()


__all__ = [
    "TelegramNotifier",
    "LoggingNotifier",
    "build_notifier",
    "compose_message",
]
