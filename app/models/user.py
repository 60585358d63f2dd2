"""
User Model for JWT Authentication

Represents the signed-in operator extracted from the Supabase JWT, plus the
login request/response bodies.
"""
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class User(BaseModel):
    """
    Operator populated from JWT token claims.

    Built from the decoded Supabase access token on every authenticated
    request; nothing about the operator is stored by the console.
    """

    # Core user fields
    user_id: str = Field(..., description="Unique user identifier (sub claim from JWT)")
    email: str = Field(..., description="User's email address")

    # Authentication metadata
    aud: Optional[str] = Field(None, description="Audience claim - typically 'authenticated'")
    role: Optional[str] = Field(None, description="User role from JWT")
    session_id: Optional[str] = Field(None, description="Session identifier")

    # Token metadata
    exp: Optional[int] = Field(None, description="Token expiration timestamp")
    iat: Optional[int] = Field(None, description="Token issued at timestamp")

    user_metadata: Optional[Dict[str, Any]] = Field(default_factory=dict, description="Additional user metadata")

    class Config:
        """Pydantic configuration"""
        json_schema_extra = {
            "example": {
                "user_id": "a1b2c3d4-e5f6-7890-abcd-ef1234567890",
                "email": "khamoo@pony.com",
                "aud": "authenticated",
                "role": "authenticated",
                "session_id": "session-123",
                "exp": 1735689600,
                "iat": 1735603200,
                "user_metadata": {}
            }
        }


class LoginRequest(BaseModel):
    """Email + password credentials for the admin login form"""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AuthSession(BaseModel):
    """Session issued by Supabase Auth after a successful login"""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_at: Optional[int] = None
    user_id: Optional[str] = None
    email: Optional[str] = None
