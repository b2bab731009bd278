"""
Authentication endpoints.

Register, login, logout, token refresh, password reset, email verification,
current profile and avatar.
"""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.database import get_db
from agencyos.core.dependencies import get_access_payload, get_current_user, get_redis
from agencyos.core.storage import ImageStorage, get_storage
from agencyos.models.user import User
from agencyos.schemas.auth import (
    AvatarResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    MeResponse,
    ProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    VerifyEmailRequest,
)
from agencyos.services.auth_service import AuthService

router = APIRouter()


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> AuthService:
    """Dependency that constructs AuthService."""
    return AuthService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Create a new user account.

    - Email must be globally unique
    - Password must be min 8 chars and contain at least 1 number
    - Returns JWT access + refresh tokens on success
    """
    return await service.register(data)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with email and password",
)
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    return await service.login(data)


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------

@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
)
async def refresh(
    data: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Exchange a valid refresh token for a new access + refresh token pair.

    Refresh tokens are rotated on every use.
    """
    return await service.refresh(data.refresh_token)


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------

@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    summary="Logout and revoke tokens",
)
async def logout(
    data: LogoutRequest,
    payload: dict = Depends(get_access_payload),
    service: AuthService = Depends(get_auth_service),
) -> dict:
    """
    Logout the current user.

    - Blacklists the current access token JTI in Redis
    - Deletes the refresh token from Redis
    """
    await service.logout(
        access_token_jti=payload.get("jti", ""),
        refresh_token=data.refresh_token,
    )
    return {}


# ---------------------------------------------------------------------------
# Password Reset
# ---------------------------------------------------------------------------

@router.post(
    "/forgot-password",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request a password reset email",
)
async def forgot_password(
    data: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> dict:
    """Always 202, whether or not the email is registered."""
    await service.forgot_password(data.email)
    return {"message": "If that email is registered, a reset link is on its way"}


@router.post(
    "/reset-password",
    status_code=status.HTTP_200_OK,
    summary="Set a new password with a reset token",
)
async def reset_password(
    data: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> dict:
    await service.reset_password(data.token, data.new_password)
    return {}


# ---------------------------------------------------------------------------
# Email verification
# ---------------------------------------------------------------------------

@router.post(
    "/verify-email",
    response_model=MeResponse,
    summary="Confirm an email address with a verification token",
)
async def verify_email(
    data: VerifyEmailRequest,
    service: AuthService = Depends(get_auth_service),
) -> MeResponse:
    return await service.verify_email(data.token)


@router.post(
    "/resend-verification",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send a fresh verification email",
)
async def resend_verification(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> dict:
    """409 when the address is already verified."""
    await service.send_verification(current_user)
    return {"message": "Verification email sent"}


# ---------------------------------------------------------------------------
# Me
# ---------------------------------------------------------------------------

@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get the current user's profile",
)
async def get_me(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> MeResponse:
    return await service.get_me(current_user)


@router.patch(
    "/me",
    response_model=MeResponse,
    summary="Update the current user's profile",
)
async def update_me(
    data: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> MeResponse:
    return await service.update_me(current_user, data)


@router.post(
    "/me/avatar",
    response_model=AvatarResponse,
    summary="Upload a profile picture",
)
async def upload_avatar(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
    storage: ImageStorage = Depends(get_storage),
) -> AvatarResponse:
    """
    Upload an image (max 2MB) and set it as the avatar.

    Allowed: any image/* content type.
    """
    return await service.upload_avatar(current_user, file, storage)
