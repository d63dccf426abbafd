"""Telegram Bot API sender for the primary chat tier."""

import httpx

from alert_escalation.logging_config import get_logger

logger = get_logger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org/bot"


class TelegramSenderError(Exception):
    """Error communicating with the Telegram Bot API."""


def _is_parse_error(response: httpx.Response) -> bool:
    """Telegram answers 400 "can't parse entities" for unbalanced Markdown."""
    return response.status_code == 400 and "parse" in response.text.lower()


class TelegramSender:
    """Async callable that posts alert messages to one Telegram chat.

    Plug into the engine as the ``telegram`` sender. Messages use
    Telegram's legacy Markdown (``*bold*``, ``_italic_``). Alert types and
    free-text details can leave stray ``_`` or ``*`` behind, so a message
    Telegram refuses to parse is resent once as plain text.
    """

    def __init__(self, bot_token: str, chat_id: str, timeout: float = 10.0):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout

    def _get_api_url(self, method: str) -> str:
        return f"{TELEGRAM_API_BASE}{self.bot_token}/{method}"

    async def __call__(self, text: str) -> bool:
        """Send a message.

        Args:
            text: Message text (Markdown formatting supported).

        Returns:
            True if the message was sent.

        Raises:
            TelegramSenderError: If the sender is not configured or the
                API call fails.
        """
        if not self.bot_token or not self.chat_id:
            raise TelegramSenderError("Telegram bot token or chat id is not configured")

        payload = {"chat_id": self.chat_id, "text": text, "parse_mode": "Markdown"}
        url = self._get_api_url("sendMessage")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(url, json=payload)

            if _is_parse_error(response):
                logger.warning("Markdown parse failed, retrying as plain text")
                plain = {"chat_id": self.chat_id, "text": text}
                response = await client.post(url, json=plain)

        if response.status_code != 200:
            raise TelegramSenderError(
                f"Failed to send message: {response.status_code} {response.text}"
            )

        data = response.json()
        if not data.get("ok"):
            raise TelegramSenderError(
                f"Send message failed: {data.get('description', 'Unknown')}"
            )

        logger.debug("Telegram message sent", chat_id=self.chat_id)
        return True
