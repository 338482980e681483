# dokon/services/telegram_client.py
import requests

from dokon.utils.logging import get_logger
from dokon.utils.retry import http_retry
from dokon.utils.settings import TELEGRAM_API_URL, TELEGRAM_TIMEOUT

logger = get_logger(__name__)


class TelegramClient:
    """Thin Bot API client. Raises requests.RequestException after retries."""

    def __init__(self, base_url: str | None = None, timeout: int = TELEGRAM_TIMEOUT):
        self.base_url = (base_url or TELEGRAM_API_URL).rstrip("/")
        self.timeout = timeout

    def _url(self, token: str, method: str) -> str:
        return f"{self.base_url}/bot{token}/{method}"

    @http_retry()
    def _post(self, token: str, method: str, payload: dict) -> dict:
        logger.info(f"TelegramClient POST {method} chat={payload.get('chat_id')}")

        resp = requests.post(self._url(token, method), json=payload, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def send_message(
        self,
        token: str,
        chat_id: str,
        text: str,
        reply_markup: dict | None = None,
        parse_mode: str | None = "Markdown",
    ) -> dict:
        payload = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return self._post(token, "sendMessage", payload)

    def send_photo(self, token: str, chat_id: str, photo: str, caption: str, parse_mode: str | None = "Markdown") -> dict:
        payload = {"chat_id": chat_id, "photo": photo, "caption": caption}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        return self._post(token, "sendPhoto", payload)

    def set_webhook(self, token: str, url: str) -> dict:
        return self._post(token, "setWebhook", {"url": url, "drop_pending_updates": False})

    def set_my_commands(self, token: str, commands: list[dict]) -> dict:
        return self._post(token, "setMyCommands", {"commands": commands})
