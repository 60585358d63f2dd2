"""
Composer

Holds the compose field of one platform page and submits operator replies to
the relay's platform send endpoint.
"""
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from app.services.platform_registry import PlatformProfile
from app.services.relay_client import BackendRelayClient, RelayError, SendResult

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[], Awaitable[None]]


class SendOutcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


class Composer:
    """Compose field + send action for one platform"""

    def __init__(
        self,
        profile: PlatformProfile,
        relay: BackendRelayClient,
        admin_email: Optional[str] = None,
        on_sent: Optional[RefreshCallback] = None,
    ):
        self.profile = profile
        self.relay = relay
        self.admin_email = admin_email
        self.on_sent = on_sent
        self.draft = ""
        self.last_result: Optional[SendResult] = None

    def set_draft(self, text: str) -> None:
        self.draft = text or ""

    async def send(self, conversation_key: Optional[str], text: Optional[str] = None) -> SendOutcome:
        """
        Send text (or the current draft) to a conversation.

        Blank text or no selected conversation is a no-op. The compose field
        is cleared once a send is attempted, whether or not the relay accepted
        it, and the page is refreshed in both cases.
        """
        body = self.draft if text is None else text
        if not body.strip() or not conversation_key:
            return SendOutcome.SKIPPED

        platform = self.profile.platform.value
        outcome = SendOutcome.SENT
        try:
            self.last_result = await self.relay.send(
                platform,
                recipient=conversation_key,
                message=body,
                message_type="text",
                admin_email=self.admin_email if self.profile.send_admin_email else None,
            )
            logger.info(f"Sent {platform} message to {conversation_key}")
        except RelayError as e:
            logger.error(f"Send failed for {platform}/{conversation_key}: {e} {e.body or ''}")
            self.last_result = None
            outcome = SendOutcome.FAILED

        # TODO: keep the draft on FAILED once the relay reports delivery errors reliably
        self.draft = ""

        if self.on_sent is not None:
            await self.on_sent()

        return outcome
