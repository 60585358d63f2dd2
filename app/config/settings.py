"""
Application Configuration
Centralized configuration management using environment variables
"""
import os
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env(name: str, *fallbacks: str, default: str = "") -> str:
    """Read the first non-empty variable among name and its fallbacks."""
    for key in (name, *fallbacks):
        value = os.getenv(key)
        if value:
            return value
    return default


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables"""

    def __init__(self):
        # Backend relay (delivers to Telegram/Facebook/Viber/TikTok and computes unread counts)
        self.BACKEND_URL: str = _env("BACKEND_URL", "VITE_BACKEND_URL", default="http://localhost:3000")
        self.RELAY_TIMEOUT: float = float(os.getenv("RELAY_TIMEOUT", "30"))

        # Operator identity used on admin-authored rows
        self.ADMIN_EMAIL: str = _env("ADMIN_EMAIL", "VITE_ADMIN_EMAIL", default="khamoo@pony.com")

        # Supabase Configuration
        self.SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
        self.SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")  # Anon key for client
        self.SUPABASE_SERVICE_KEY: str = os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
        self.SUPABASE_JWT_SECRET: str = os.getenv("SUPABASE_JWT_SECRET", "")

        # Message table shared with the relay
        self.MESSAGES_TABLE: str = os.getenv("MESSAGES_TABLE", "pony_messages")

        # Unread badge polling period (seconds)
        self.UNREAD_POLL_INTERVAL: float = float(os.getenv("UNREAD_POLL_INTERVAL", "15"))

        # Platforms exposed by the console
        self.ENABLED_PLATFORMS: List[str] = _env_list("ENABLED_PLATFORMS", "telegram,facebook,tiktok,viber")

        # CORS Configuration
        self.CORS_ORIGINS: List[str] = _env_list(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
        )

    @property
    def supabase_key(self) -> Optional[str]:
        """Service role key when available, anon key otherwise"""
        return self.SUPABASE_SERVICE_KEY or self.SUPABASE_KEY or None

    @property
    def is_supabase_configured(self) -> bool:
        """Check if the message store can be reached"""
        return bool(self.SUPABASE_URL and self.supabase_key)

    @property
    def is_auth_configured(self) -> bool:
        """Check if Supabase JWT configuration is present"""
        return bool(self.SUPABASE_URL and self.SUPABASE_JWT_SECRET)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings"""
    return settings
