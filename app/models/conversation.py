"""
Conversation Models

Derived (never persisted) views over the message table, plus the request and
response bodies of the inbox API.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, computed_field, validator


class ViewState(str, Enum):
    """Inbox page mode"""
    LIST = "list"
    OPEN = "open"


class ConversationSummary(BaseModel):
    """One row of the conversation list"""
    key: str = Field(..., description="Conversation key (platform_user_id or sender)")
    display_name: str = Field(..., description="Best available display name")
    avatar_url: str = Field("", description="Avatar or profile picture URL")
    initial: str = Field("", description="Avatar fallback letter")
    last_message: str = Field("", description="Preview text of the most recent message")
    last_message_at: Optional[str] = Field(None, description="created_at of the most recent message")
    last_message_from_admin: bool = False
    last_attachment_kind: Optional[str] = None
    unread_count: int = Field(0, description="Unread count reported by the relay")

    @computed_field
    @property
    def has_badge(self) -> bool:
        return self.unread_count > 0

    class Config:
        json_schema_extra = {
            "example": {
                "key": "123456789",
                "display_name": "Alice Smith",
                "avatar_url": "",
                "initial": "A",
                "last_message": "Hi, is the shop open today?",
                "last_message_at": "2025-03-02T10:15:00+00:00",
                "last_message_from_admin": False,
                "last_attachment_kind": None,
                "unread_count": 3,
            }
        }


class ThreadMessage(BaseModel):
    """A message rendered inside an open conversation"""
    id: Optional[str] = None
    message: str = ""
    is_admin: bool = False
    media_url: Optional[str] = None
    attachment_kind: Optional[str] = None
    created_at: Optional[str] = None
    timestamp_visible: bool = False


class InboxView(BaseModel):
    """Snapshot of one platform page"""
    platform: str
    label: str
    state: ViewState
    selected: Optional[str] = None
    selected_display_name: Optional[str] = None
    loading: bool = False
    conversations: List[ConversationSummary] = Field(default_factory=list)
    thread: List[ThreadMessage] = Field(default_factory=list)
    draft: str = ""


class PlatformOverview(BaseModel):
    """Home screen tile for one platform"""
    platform: str
    label: str
    badge_color: str
    unread_total: int = 0


class UnreadCountsResponse(BaseModel):
    """Body of GET /{platform}/unread-count on the relay"""
    counts: Dict[str, int] = Field(default_factory=dict)

    @validator("counts", pre=True)
    def drop_non_numeric(cls, v):
        # A missing or malformed map means no unread messages
        if not isinstance(v, dict):
            return {}
        counts = {}
        for key, value in v.items():
            try:
                counts[str(key)] = int(value)
            except (TypeError, ValueError):
                continue
        return counts


class DraftUpdate(BaseModel):
    """Replace the compose field contents"""
    text: str = ""


class SendRequest(BaseModel):
    """Operator reply to the open conversation"""
    text: Optional[str] = Field(None, description="Message text; the current draft is used when omitted")


class GenericSendRequest(BaseModel):
    """Platform-agnostic relay send (POST /send)"""
    recipient: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    platform: str = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "recipient": "123456789",
                "message": "Thanks, we are open until 8pm.",
                "platform": "telegram",
            }
        }


class SendResponse(BaseModel):
    """Outcome of a send attempt"""
    status: str = Field(..., description="sent, failed or skipped")
    platform: str
    recipient: Optional[str] = None
    relay: Optional[Dict] = Field(None, description="Relay echo of the send result")
