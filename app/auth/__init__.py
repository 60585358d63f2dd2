"""
Authentication Module

Provides JWT session checks for the admin console using Supabase tokens.
"""
from app.auth.jwt_handler import decode_jwt_token, extract_user_from_token, JWTValidationError
from app.auth.dependencies import get_bearer_token, get_current_user

__all__ = [
    "decode_jwt_token",
    "extract_user_from_token",
    "JWTValidationError",
    "get_bearer_token",
    "get_current_user",
]
