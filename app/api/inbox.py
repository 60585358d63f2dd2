"""
Inbox API Router

Per-platform inbox endpoints: conversation list, open conversation, thread,
timestamp toggles, compose field and send. Every route needs a signed-in
operator; selection and draft are kept per operator.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.dependencies import get_current_user
from app.models.conversation import (
    ConversationSummary,
    DraftUpdate,
    GenericSendRequest,
    InboxView,
    PlatformOverview,
    SendRequest,
    SendResponse,
    ThreadMessage,
)
from app.models.user import User
from app.services.composer import SendOutcome
from app.services.inbox_service import InboxRegistry, PlatformInbox, get_inbox_registry
from app.services.platform_registry import UnknownPlatformError, get_platform_profile
from app.services.relay_client import RelayError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inbox", tags=["inbox"])


def _get_inbox(platform: str, registry: InboxRegistry) -> PlatformInbox:
    try:
        return registry.get(platform)
    except UnknownPlatformError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/platforms", response_model=List[PlatformOverview])
async def list_platforms(
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    """Home screen: one tile per platform with its total unread count"""
    return registry.overview()


@router.post("/send", response_model=SendResponse)
async def send_generic(
    payload: GenericSendRequest,
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    """Platform-agnostic send through the relay's /send endpoint"""
    try:
        platform = get_platform_profile(payload.platform).platform.value
    except UnknownPlatformError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    try:
        result = await registry.relay.send_generic(payload.recipient, payload.message, platform)
    except RelayError as e:
        logger.error(f"Generic send failed: {e}")
        return SendResponse(status=SendOutcome.FAILED.value, platform=platform, recipient=payload.recipient)

    return SendResponse(
        status=SendOutcome.SENT.value,
        platform=platform,
        recipient=payload.recipient,
        relay=result.data,
    )


@router.get("/{platform}", response_model=InboxView)
async def get_inbox_view(
    platform: str,
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    """Full page snapshot: mode, conversation list, open thread and draft"""
    return _get_inbox(platform, registry).view(user.user_id)


@router.get("/{platform}/conversations", response_model=List[ConversationSummary])
async def list_conversations(
    platform: str,
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    return _get_inbox(platform, registry).conversations()


@router.post("/{platform}/refresh", response_model=InboxView)
async def refresh_inbox(
    platform: str,
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    inbox = _get_inbox(platform, registry)
    await inbox.refresh()
    return inbox.view(user.user_id)


@router.post("/{platform}/conversations/{conversation_key}/open", response_model=InboxView)
async def open_conversation(
    platform: str,
    conversation_key: str,
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    """Open a conversation; the relay is told to mark it read"""
    inbox = _get_inbox(platform, registry)
    if not inbox.has_conversation(conversation_key):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")

    await inbox.open_conversation(conversation_key, user.user_id)
    return inbox.view(user.user_id)


@router.post("/{platform}/back", response_model=InboxView)
async def back_to_list(
    platform: str,
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    inbox = _get_inbox(platform, registry)
    inbox.back(user.user_id)
    return inbox.view(user.user_id)


@router.get("/{platform}/thread", response_model=List[ThreadMessage])
async def get_thread(
    platform: str,
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    """Messages of the open conversation (empty in list mode)"""
    return _get_inbox(platform, registry).thread(user.user_id)


@router.post("/{platform}/messages/{message_id}/toggle-timestamp")
async def toggle_timestamp(
    platform: str,
    message_id: str,
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    visible = _get_inbox(platform, registry).toggle_timestamp(message_id, user.user_id)
    return {"message_id": message_id, "timestamp_visible": visible}


@router.put("/{platform}/draft")
async def update_draft(
    platform: str,
    payload: DraftUpdate,
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    inbox = _get_inbox(platform, registry)
    inbox.set_draft(payload.text, user.user_id)
    return {"draft": inbox.operator_state(user.user_id).composer.draft}


@router.post("/{platform}/send", response_model=SendResponse)
async def send_message(
    platform: str,
    payload: SendRequest,
    user: User = Depends(get_current_user),
    registry: InboxRegistry = Depends(get_inbox_registry),
):
    """
    Reply to the open conversation.

    Blank text or no open conversation returns status "skipped" without
    calling the relay.
    """
    inbox = _get_inbox(platform, registry)
    state = inbox.operator_state(user.user_id)
    recipient = state.controller.selected
    outcome = await inbox.send(payload.text, user.user_id)

    relay_echo = None
    if outcome == SendOutcome.SENT and state.composer.last_result is not None:
        relay_echo = state.composer.last_result.data

    return SendResponse(
        status=outcome.value,
        platform=inbox.platform,
        recipient=recipient,
        relay=relay_echo,
    )
