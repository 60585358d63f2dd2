"""Business logic services"""
from .inbox_service import InboxRegistry, PlatformInbox, get_inbox_registry
from .auth_service import AuthService, get_auth_service

__all__ = [
    "InboxRegistry",
    "PlatformInbox",
    "get_inbox_registry",
    "AuthService",
    "get_auth_service",
]
