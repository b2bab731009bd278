"""
Authentication schemas.

Request/response models for the auth endpoints and the current-user profile.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


def _password_must_contain_number(v: str) -> str:
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one number")
    return v


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_must_contain_number(cls, v: str) -> str:
        return _password_must_contain_number(v)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    email: EmailStr
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    """Response for login and token refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token TTL in seconds")


# ---------------------------------------------------------------------------
# Refresh / Logout
# ---------------------------------------------------------------------------

class RefreshRequest(BaseModel):
    """Request body for POST /auth/refresh."""

    refresh_token: str


class LogoutRequest(BaseModel):
    """Request body for POST /auth/logout."""

    refresh_token: str


# ---------------------------------------------------------------------------
# Password Reset
# ---------------------------------------------------------------------------

class ForgotPasswordRequest(BaseModel):
    """Request body for POST /auth/forgot-password."""

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Request body for POST /auth/reset-password."""

    token: str
    new_password: str = Field(min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def password_must_contain_number(cls, v: str) -> str:
        return _password_must_contain_number(v)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

class MeResponse(BaseModel):
    """Response for GET /auth/me."""

    id: UUID
    email: str
    name: str
    phone: str | None
    department: str | None
    avatar_url: str | None
    email_verified: bool
    welcomed: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileUpdateRequest(BaseModel):
    """Request body for PATCH /auth/me. Only provided fields are written."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    department: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = Field(default=None, max_length=500)
    welcomed: bool | None = None


class AvatarResponse(BaseModel):
    """Response for POST /auth/me/avatar."""

    avatar_url: str


# ---------------------------------------------------------------------------
# Email verification
# ---------------------------------------------------------------------------

class VerifyEmailRequest(BaseModel):
    """Request body for POST /auth/verify-email."""

    token: str = Field(min_length=1)
