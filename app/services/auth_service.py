"""
Auth Service

Email/password sign-in and sign-out against Supabase Auth. Session checks on
each request are done locally by app.auth (JWT validation).
"""
import asyncio
import logging
from typing import Any, Callable, Optional

from supabase import create_client, Client

from app.config.settings import Settings, settings as default_settings
from app.models.user import AuthSession

logger = logging.getLogger(__name__)

DEFAULT_AUTH_ERROR = "Auth failed"


class AuthFailure(Exception):
    """Bad credentials or unavailable auth provider; message is shown to the operator"""

    def __init__(self, message: str = DEFAULT_AUTH_ERROR):
        super().__init__(message)
        self.message = message


class AuthService:
    def __init__(
        self,
        config: Optional[Settings] = None,
        client_factory: Optional[Callable[[str, str], Any]] = None,
    ):
        self.config = config or default_settings
        self._client_factory = client_factory or create_client

    def _new_client(self, key: Optional[str]) -> Client:
        if not self.config.SUPABASE_URL or not key:
            raise AuthFailure("Authentication service is not configured")
        return self._client_factory(self.config.SUPABASE_URL, key)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Sign in with email + password.

        A fresh client is used per attempt so no session state is shared
        between operators.

        Raises:
            AuthFailure: With the provider's message, or "Auth failed"
        """
        client = self._new_client(self.config.SUPABASE_KEY or self.config.supabase_key)

        try:
            response = await asyncio.to_thread(
                lambda: client.auth.sign_in_with_password({"email": email, "password": password})
            )
        except Exception as e:
            message = getattr(e, "message", None) or str(e) or DEFAULT_AUTH_ERROR
            logger.warning(f"Login failed for {email}: {message}")
            raise AuthFailure(message)

        session = getattr(response, "session", None)
        if session is None or not getattr(session, "access_token", None):
            logger.warning(f"Login for {email} returned no session")
            raise AuthFailure(DEFAULT_AUTH_ERROR)

        user = getattr(response, "user", None) or getattr(session, "user", None)
        logger.info(f"Operator signed in: {email}")
        return AuthSession(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            expires_at=getattr(session, "expires_at", None),
            user_id=getattr(user, "id", None),
            email=getattr(user, "email", None) or email,
        )

    async def sign_out(self, access_token: str) -> bool:
        """Revoke the operator's session; failures are logged, not raised"""
        try:
            client = self._new_client(self.config.supabase_key)
            await asyncio.to_thread(lambda: client.auth.admin.sign_out(access_token))
            return True
        except Exception as e:
            logger.error(f"Sign out failed: {e}")
            return False


# Singleton
_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    global _service
    if _service is None:
        _service = AuthService()
    return _service
