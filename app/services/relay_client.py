"""
Backend Relay Client

HTTP client for the relay that delivers messages to each chat platform and
computes unread counts. Every platform lives under its own namespace
(/telegram/*, /facebook/*, /viber/*, /tiktok/*); /send is platform-agnostic.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from app.config.settings import Settings, settings as default_settings
from app.models.conversation import UnreadCountsResponse

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Transport or non-2xx failure talking to the relay"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass
class SendResult:
    """Relay acknowledgement of a send"""
    status_code: int
    data: Dict[str, Any] = field(default_factory=dict)


class BackendRelayClient:
    """Thin async wrapper over the relay's HTTP contract"""

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or default_settings
        self.base_url = config.BACKEND_URL.rstrip("/")
        self.timeout = config.RELAY_TIMEOUT
        self.transport = transport

    def _get_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, json=payload, headers=self._get_headers())
        except httpx.HTTPError as e:
            raise RelayError(f"Relay request {method} {path} failed: {e}")

        if response.status_code >= 400:
            raise RelayError(
                f"Relay returned {response.status_code} for {method} {path}",
                status_code=response.status_code,
                body=self._decode(response),
            )
        return response

    async def get_unread_counts(self, platform: str) -> Dict[str, int]:
        """GET /{platform}/unread-count -> {conversation_key: count}"""
        data = self._decode(await self._request("GET", f"/{platform}/unread-count"))
        if not isinstance(data, dict):
            logger.warning(f"Unexpected {platform} unread-count body: {data!r}")
            return {}
        return UnreadCountsResponse(**data).counts

    async def mark_read(self, platform: str, conversation_key: str) -> None:
        """POST /{platform}/mark-read {sender}"""
        await self._request("POST", f"/{platform}/mark-read", {"sender": conversation_key})

    async def send(
        self,
        platform: str,
        recipient: str,
        message: str,
        message_type: str = "text",
        admin_email: Optional[str] = None,
    ) -> SendResult:
        """POST /{platform}/send"""
        payload: Dict[str, Any] = {
            "recipient": recipient,
            "message": message,
            "message_type": message_type,
        }
        if admin_email:
            payload["adminEmail"] = admin_email

        response = await self._request("POST", f"/{platform}/send", payload)
        data = self._decode(response)
        return SendResult(status_code=response.status_code, data=data if isinstance(data, dict) else {"result": data})

    async def send_generic(self, recipient: str, message: str, platform: str) -> SendResult:
        """POST /send {recipient, message, platform}"""
        payload = {"recipient": recipient, "message": message, "platform": platform}
        response = await self._request("POST", "/send", payload)
        data = self._decode(response)
        return SendResult(status_code=response.status_code, data=data if isinstance(data, dict) else {"result": data})
