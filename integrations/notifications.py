"""
Notification sinks for user-visible pricing messages.

A sink receives fire-and-forget notify(kind, message) calls. Callers
never depend on delivery: a failed send is logged and dropped by the
caller.
"""

from typing import Optional
import requests
import structlog

from config import settings

logger = structlog.get_logger(__name__)


KIND_EMOJIS = {
    "success": "✅",
    "warning": "⚠️",
    "error": "\U0001f6a8",
    "info": "ℹ️",
}


class NotificationError(Exception):
    """Notification delivery failed."""
    pass


class NotificationSink:
    """Base sink: subclasses deliver the message somewhere."""

    def notify(self, kind: str, message: str) -> bool:
        raise NotImplementedError


class LogNotificationSink(NotificationSink):
    """Writes notifications to the structured log."""

    def notify(self, kind: str, message: str) -> bool:
        log = logger.warning if kind in ("warning", "error") else logger.info
        log("pricing_notification", kind=kind, message=message)
        return True


class TelegramNotificationSink(NotificationSink):
    """Sends notifications to a Telegram chat through the Bot API."""

    def __init__(self, bot_token: str, chat_id: str, timeout: int = 10):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout

    def format_message(self, kind: str, message: str) -> str:
        emoji = KIND_EMOJIS.get(kind, "•")
        return f"{emoji} *{kind.upper()}*\n\n{message}"

    def notify(self, kind: str, message: str) -> bool:
        """
        Send a notification.

        Returns:
            True if sent successfully

        Raises:
            NotificationError: If the Telegram API rejects or the request fails
        """
        url = f"https://api.telegram.org/bot{self.bot_token}/sendMessage"

        payload = {
            "chat_id": self.chat_id,
            "text": self.format_message(kind, message),
            "parse_mode": "Markdown",
            "disable_web_page_preview": True,
        }

        try:
            logger.info("sending_telegram_notification", chat_id=self.chat_id, kind=kind)

            response = requests.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()

            result = response.json()

            if not result.get("ok"):
                error_msg = result.get("description", "Unknown error")
                logger.error("telegram_api_error", error=error_msg)
                raise NotificationError(f"Telegram API error: {error_msg}")

            return True

        except requests.exceptions.RequestException as e:
            logger.error("telegram_request_failed", error=str(e))
            raise NotificationError(f"Failed to send Telegram message: {str(e)}")


_notification_sink: Optional[NotificationSink] = None


def get_notification_sink() -> NotificationSink:
    """Telegram when configured, otherwise the log."""
    global _notification_sink
    if _notification_sink is None:
        if settings.telegram_configured:
            _notification_sink = TelegramNotificationSink(
                settings.telegram_bot_token,
                settings.telegram_chat_id
            )
        else:
            _notification_sink = LogNotificationSink()
    return _notification_sink
