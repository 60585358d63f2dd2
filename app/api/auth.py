"""
Auth API Router
Admin login/logout against Supabase Auth
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.dependencies import get_bearer_token, get_current_user
from app.models.user import AuthSession, LoginRequest, User
from app.services.auth_service import AuthFailure, AuthService, get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=AuthSession)
async def login(payload: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Exchange email + password for a Supabase session"""
    try:
        return await service.sign_in(payload.email, payload.password)
    except AuthFailure as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)


@router.post("/logout")
async def logout(
    user: User = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service),
):
    revoked = await service.sign_out(token)
    return {"status": "signed_out", "revoked": revoked}


@router.get("/me", response_model=User)
async def me(user: User = Depends(get_current_user)):
    """Session presence check"""
    return user
