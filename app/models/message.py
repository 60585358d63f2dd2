"""
Message Models

Rows of the shared ``pony_messages`` table. The table is written by the relay
(inbound webhooks and operator sends); the console only reads it.
"""
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, validator


class Platform(str, Enum):
    """Chat platforms routed through the relay"""
    TELEGRAM = "telegram"
    FACEBOOK = "facebook"
    TIKTOK = "tiktok"
    VIBER = "viber"


class Message(BaseModel):
    """A single stored message, inbound or admin-authored"""
    id: Optional[str] = Field(None, description="Opaque row identifier")
    platform: Optional[str] = Field(None, description="telegram, facebook, tiktok or viber")
    sender: Optional[str] = Field("", description="Admin identity or the external user identifier")
    platform_user_id: Optional[str] = Field(None, description="Platform user id, preferred grouping key")
    recipient: Optional[str] = Field(None, description="Target user for admin-authored rows")
    message: Optional[str] = Field("", description="Text body, empty for media-only rows")
    media_url: Optional[str] = None
    message_type: Optional[str] = None
    created_at: Optional[Union[str, int, float]] = None

    # Telegram display fields
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None

    # Facebook / Viber display fields
    name: Optional[str] = None
    profile_pic: Optional[str] = None

    # TikTok display field
    nickname: Optional[str] = None

    class Config:
        extra = "allow"  # Keep any extra columns the relay writes
        json_schema_extra = {
            "example": {
                "id": "5b7c1d2e-0000-4000-8000-000000000001",
                "platform": "telegram",
                "sender": "123456789",
                "platform_user_id": "123456789",
                "message": "Hi, is the shop open today?",
                "created_at": "2025-03-02T10:15:00+00:00",
                "first_name": "Alice",
                "last_name": "Smith",
                "username": "alice",
            }
        }

    @validator("id", "sender", "platform_user_id", "recipient", pre=True)
    def stringify_identifiers(cls, v):
        # Supabase returns bigint ids and numeric Telegram ids as ints
        if v is None:
            return v
        return str(v)

    @property
    def attachment_kind(self) -> Optional[str]:
        """'image' for inline images, 'file' for any other media, None without media"""
        if not self.media_url:
            return None
        return "image" if self.message_type == "image" else "file"

    def display_value(self, field: str) -> str:
        """Stripped string value of a display field, empty when missing"""
        value = getattr(self, field, None)
        if value is None:
            value = (self.model_extra or {}).get(field)
        if value is None:
            return ""
        return str(value).strip()
