"""
Platform Registry

Declarative field-mapping table for every chat platform the console serves.
Each page of the inbox is the same aggregation/polling pipeline; the only
per-platform differences are captured here.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Union

from app.models.message import Message, Platform


class UnknownPlatformError(Exception):
    """Raised when a platform name is not in the registry"""
    pass


def _telegram_display(msg: Message) -> str:
    first_name = msg.display_value("first_name")
    last_name = msg.display_value("last_name")
    if first_name and last_name:
        return f"{first_name} {last_name}"
    return msg.display_value("username")


def _field_display(field: str) -> Callable[[Message], str]:
    def display(msg: Message) -> str:
        return msg.display_value(field)
    return display


@dataclass(frozen=True)
class PlatformProfile:
    """How one platform's rows map onto conversation display metadata"""
    platform: Platform
    label: str
    badge_color: str
    name_fields: Tuple[str, ...]
    avatar_fields: Tuple[str, ...]
    display_formatter: Callable[[Message], str]
    timestamps_collapsible: bool = True
    # Telegram's send endpoint never received the admin identity
    send_admin_email: bool = True

    def has_display_fields(self, msg: Message) -> bool:
        """True when the row carries a non-empty name or avatar"""
        return any(msg.display_value(f) for f in self.name_fields + self.avatar_fields)

    def display_name(self, msg: Message, fallback: str) -> str:
        return self.display_formatter(msg) or fallback

    def avatar_url(self, msg: Message) -> str:
        for field in self.avatar_fields + ("media_url",):
            value = msg.display_value(field)
            if value:
                return value
        return ""


PLATFORMS: Dict[Platform, PlatformProfile] = {
    Platform.TELEGRAM: PlatformProfile(
        platform=Platform.TELEGRAM,
        label="Telegram",
        badge_color="blue",
        name_fields=("first_name", "last_name", "username"),
        avatar_fields=(),
        display_formatter=_telegram_display,
        send_admin_email=False,
    ),
    Platform.FACEBOOK: PlatformProfile(
        platform=Platform.FACEBOOK,
        label="Facebook",
        badge_color="indigo",
        name_fields=("name",),
        avatar_fields=("profile_pic",),
        display_formatter=_field_display("name"),
    ),
    Platform.TIKTOK: PlatformProfile(
        platform=Platform.TIKTOK,
        label="TikTok",
        badge_color="pink",
        name_fields=("nickname",),
        avatar_fields=("profile_pic",),
        display_formatter=_field_display("nickname"),
    ),
    Platform.VIBER: PlatformProfile(
        platform=Platform.VIBER,
        label="Viber",
        badge_color="purple",
        name_fields=("name",),
        avatar_fields=("profile_pic",),
        display_formatter=_field_display("name"),
        timestamps_collapsible=False,
    ),
}


def get_platform_profile(platform: Union[str, Platform]) -> PlatformProfile:
    """Look up a platform profile by enum or name (case-insensitive)"""
    try:
        key = platform if isinstance(platform, Platform) else Platform(str(platform).strip().lower())
    except ValueError:
        raise UnknownPlatformError(f"Unknown platform: {platform}")
    return PLATFORMS[key]
