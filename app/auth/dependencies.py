"""
FastAPI Authentication Dependencies

Every inbox route requires a valid Supabase session; a missing or invalid
bearer token is answered with 401, the API equivalent of sending the operator
back to the login form.
"""
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.auth.jwt_handler import extract_user_from_token, JWTValidationError
from app.config.settings import Settings, get_settings
from app.models.user import User

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
# auto_error is off so a missing header yields 401 (not HTTPBearer's default 403)
security = HTTPBearer(
    scheme_name="BearerAuth",  # Must match OpenAPI securitySchemes key
    description="Supabase access token from /auth/login",
    auto_error=False
)


async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> str:
    """Raw bearer token from the Authorization header"""
    if not credentials or not credentials.credentials:
        logger.warning("Authorization header missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    config: Settings = Depends(get_settings),
) -> User:
    """
    FastAPI dependency to get the signed-in operator.

    Usage:
        @router.get("/inbox/platforms")
        async def overview(user: User = Depends(get_current_user)):
            ...

    Raises:
        HTTPException: 401 if token is missing, invalid or expired
    """
    try:
        return extract_user_from_token(token, config)
    except JWTValidationError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
