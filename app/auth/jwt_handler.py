"""
Supabase access token checks.

Tokens are verified locally against the project's JWT secret; Supabase Auth
itself is only contacted at login and logout.
"""
import logging
from typing import Any, Dict

from jose import jwt, JWTError
from jose.exceptions import ExpiredSignatureError, JWTClaimsError

from app.config.settings import Settings
from app.models.user import User

logger = logging.getLogger(__name__)

SUPABASE_AUDIENCE = "authenticated"


class JWTValidationError(Exception):
    """Token missing, malformed, expired or signed with another secret"""
    pass


def decode_jwt_token(token: str, config: Settings) -> Dict[str, Any]:
    """
    Verify signature, audience and expiry, and return the claims.

    Raises:
        JWTValidationError: With a message safe to return to the client
    """
    if not config.is_auth_configured:
        logger.error("Supabase JWT configuration is missing")
        raise JWTValidationError("Authentication service is not configured")

    if not token:
        raise JWTValidationError("Token is required")

    try:
        return jwt.decode(
            token,
            config.SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            audience=SUPABASE_AUDIENCE,
        )
    except ExpiredSignatureError:
        raise JWTValidationError("Token has expired")
    except JWTClaimsError as e:
        logger.warning(f"JWT claims error: {e}")
        raise JWTValidationError("Invalid token claims")
    except JWTError as e:
        logger.warning(f"JWT validation error: {e}")
        raise JWTValidationError("Invalid token")


def extract_user_from_token(token: str, config: Settings) -> User:
    """Build the operator from a verified token; sub and email are required"""
    claims = decode_jwt_token(token, config)

    if not claims.get("sub"):
        raise JWTValidationError("User ID (sub) not found in token")
    if not claims.get("email"):
        raise JWTValidationError("Email not found in token")

    return User(
        user_id=claims["sub"],
        email=claims["email"],
        aud=claims.get("aud"),
        role=claims.get("role"),
        session_id=claims.get("session_id"),
        exp=claims.get("exp"),
        iat=claims.get("iat"),
        user_metadata=claims.get("user_metadata") or {},
    )
