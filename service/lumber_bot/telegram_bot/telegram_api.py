"""
Telegram Bot API client.

Thin httpx wrapper for the three methods the bot needs:
getUpdates, sendMessage and setWebhook.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from lumber_bot.errors import ConfigError, DecodeError, RemoteRejection, TransportError
from .models import InboundEvent

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.telegram.org"
ALLOWED_UPDATES = ["message"]


class TelegramClient:
    """
    Client for one bot token.

    Every method raises TransportError on network/decoding failure and
    RemoteRejection when Telegram answers with ok=false.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        bot_token: str,
        user_agent: str,
        base_url: str = API_BASE_URL,
    ):
        self.client = client
        self.bot_token = bot_token
        self.user_agent = user_agent
        self.base_url = base_url.rstrip("/")

    def _url(self, method: str) -> str:
        return f"{self.base_url}/bot{self.bot_token}/{method}"

    async def _call(self, method: str, http_method: str = "POST", **kwargs) -> Any:
        headers = {"User-Agent": self.user_agent}
        try:
            response = await self.client.request(
                http_method, self._url(method), headers=headers, **kwargs
            )
        except httpx.HTTPError as e:
            # Exception text can contain the URL, i.e. the token
            raise TransportError(f"{method} failed: {type(e).__name__}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(
                f"{method} returned undecodable body (HTTP {response.status_code})"
            ) from e

        if not isinstance(payload, dict):
            raise TransportError(f"{method} returned unexpected body")

        if not payload.get("ok"):
            raise RemoteRejection(
                payload.get("description") or f"{method} failed with HTTP {response.status_code}",
                payload.get("error_code"),
            )

        return payload.get("result")

    async def get_updates(self, offset: int, timeout: int = 20) -> list[InboundEvent]:
        """
        Long-poll for new updates.

        Args:
            offset: Identifier of the first update to return
            timeout: Long-poll timeout in seconds

        Returns:
            Decoded events in the order Telegram returned them
        """
        result = await self._call(
            "getUpdates",
            http_method="GET",
            params={
                "offset": offset,
                "timeout": timeout,
                "allowed_updates": json.dumps(ALLOWED_UPDATES),
            },
            # The request must outlive the long poll itself
            timeout=httpx.Timeout(timeout + 10.0, connect=10.0),
        )

        if not isinstance(result, list):
            raise TransportError("getUpdates result is not a list")

        events = []
        for item in result:
            try:
                events.append(InboundEvent.from_dict(item))
            except DecodeError as e:
                update_id = item.get("update_id") if isinstance(item, dict) else None
                logger.warning(f"Skipping undecodable update {update_id}: {e}")
                if isinstance(update_id, int) and not isinstance(update_id, bool):
                    # Empty text: the dispatcher ignores it, the cursor still moves past it
                    events.append(InboundEvent(event_id=update_id, chat_id=0, reply_target_id=0, text=""))
        return events

    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_to_message_id: Optional[int] = None,
    ) -> dict:
        """
        Send a text message, optionally as a reply.

        Returns:
            The sent Message object
        """
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
        }
        if reply_to_message_id:
            payload["reply_to_message_id"] = reply_to_message_id

        return await self._call("sendMessage", json=payload)

    async def set_webhook(self, url: str, certificate_path: Union[str, Path]) -> bool:
        """
        Register a webhook with a self-signed certificate.

        Raises:
            ConfigError: certificate file cannot be read
        """
        certificate_path = Path(certificate_path)
        try:
            certificate = certificate_path.read_bytes()
        except OSError as e:
            raise ConfigError(f"Could not read certificate {certificate_path}: {e}") from e

        return await self._call(
            "setWebhook",
            data={
                "url": url,
                "allowed_updates": json.dumps(ALLOWED_UPDATES),
            },
            files={"certificate": (certificate_path.name, certificate)},
        )
