"""
Authentication business logic.

Handles user registration, login, token refresh, logout, password reset
and the current user's profile. Routers only handle HTTP concerns.
"""

from __future__ import annotations

import logging
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, UploadFile, status
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.config import settings
from agencyos.core.security import (
    blacklist_redis_key,
    create_access_token,
    create_email_verification_token,
    create_password_reset_token,
    create_refresh_token,
    decode_refresh_token,
    email_verify_redis_key,
    hash_password,
    password_reset_redis_key,
    refresh_token_redis_key,
    verify_password,
)
from agencyos.core.storage import ImageStorage, StorageError
from agencyos.models.user import User
from agencyos.schemas.auth import (
    AvatarResponse,
    LoginRequest,
    MeResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    TokenResponse,
)
from agencyos.services.uploads import read_image_upload, storage_unavailable

logger = logging.getLogger(__name__)


def _queue_password_reset_email(to_email: str, reset_token: str) -> None:
    """
    Enqueue the password reset email.
    Import is deferred to avoid circular imports at module load.
    """
    from agencyos.workers.email_tasks import send_password_reset_email
    send_password_reset_email.delay(
        to_email=to_email,
        reset_token=reset_token,
        frontend_url=settings.FRONTEND_URL,
    )


def _queue_verification_email(to_email: str, verify_token: str) -> None:
    from agencyos.workers.email_tasks import send_verification_email
    send_verification_email.delay(
        to_email=to_email,
        verify_token=verify_token,
        frontend_url=settings.FRONTEND_URL,
    )


class AuthService:
    """Handles all authentication operations."""

    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # Register
    # -----------------------------------------------------------------------

    async def register(self, data: RegisterRequest) -> TokenResponse:
        """
        Register a new user.

        - Validates email uniqueness
        - Hashes password
        - Creates user record
        - Queues the address verification email
        - Issues JWT tokens
        """
        if await self.get_user_by_email(data.email) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "EMAIL_TAKEN", "message": "Email is already registered"},
            )

        user = await self.create_user(email=data.email, password=data.password, name=data.name)
        await self.send_verification(user)
        logger.info("Registered user %s", user.id)
        return await self.issue_tokens(user)

    # -----------------------------------------------------------------------
    # Login
    # -----------------------------------------------------------------------

    async def login(self, data: LoginRequest) -> TokenResponse:
        """
        Authenticate user with email + password.

        Raises 401 for invalid credentials (never reveals which field is wrong).
        """
        user = await self.authenticate(data.email, data.password)
        return await self.issue_tokens(user)

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user for valid credentials, otherwise raise 401/403."""
        user = await self.get_user_by_email(email)

        if user is None or user.password_hash is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "INVALID_CREDENTIALS", "message": "Invalid email or password"},
            )

        if not verify_password(password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "INVALID_CREDENTIALS", "message": "Invalid email or password"},
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "ACCOUNT_DISABLED", "message": "Account is disabled"},
            )

        return user

    # -----------------------------------------------------------------------
    # Refresh
    # -----------------------------------------------------------------------

    async def refresh(self, refresh_token: str) -> TokenResponse:
        """
        Exchange a valid refresh token for a new token pair.

        - Validates refresh token JWT
        - Checks token exists in Redis
        - Rotates: deletes old refresh token, issues new pair
        """
        try:
            payload = decode_refresh_token(refresh_token)
        except JWTError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "INVALID_TOKEN", "message": "Refresh token is invalid or expired"},
            )

        user_id: str = payload.get("sub", "")
        jti: str = payload.get("jti", "")

        redis_key = refresh_token_redis_key(user_id, jti)
        if not await self.redis.exists(redis_key):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "TOKEN_REVOKED", "message": "Refresh token has been revoked"},
            )

        user = await self.db.get(User, UUID(user_id))
        if user is None or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "USER_NOT_FOUND", "message": "User not found or inactive"},
            )

        await self.redis.delete(redis_key)
        return await self.issue_tokens(user)

    # -----------------------------------------------------------------------
    # Logout
    # -----------------------------------------------------------------------

    async def logout(self, access_token_jti: str, refresh_token: str) -> None:
        """
        Logout user by:
        - Blacklisting the access token JTI
        - Deleting the refresh token from Redis
        """
        await self.redis.setex(
            blacklist_redis_key(access_token_jti),
            settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "1",
        )

        try:
            payload = decode_refresh_token(refresh_token)
        except JWTError:
            # Already expired refresh tokens have nothing left to revoke
            return
        await self.redis.delete(
            refresh_token_redis_key(payload.get("sub", ""), payload.get("jti", ""))
        )

    # -----------------------------------------------------------------------
    # Forgot / Reset Password
    # -----------------------------------------------------------------------

    async def forgot_password(self, email: str) -> None:
        """
        Initiate password reset flow.

        Always returns successfully to prevent user enumeration.
        Queues email via Celery if user exists.
        """
        user = await self.get_user_by_email(email)
        if user is None:
            return

        token = create_password_reset_token()
        await self.redis.setex(
            password_reset_redis_key(token),
            settings.PASSWORD_RESET_EXPIRE_SECONDS,
            str(user.id),
        )
        _queue_password_reset_email(to_email=user.email, reset_token=token)

    async def reset_password(self, token: str, new_password: str) -> None:
        """Validate the reset token, set the new password and burn the token."""
        redis_key = password_reset_redis_key(token)
        user_id_str = await self.redis.get(redis_key)

        if user_id_str is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_TOKEN", "message": "Reset token is invalid or expired"},
            )

        user = await self.db.get(User, UUID(user_id_str))
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "USER_NOT_FOUND", "message": "User not found"},
            )

        user.password_hash = hash_password(new_password)
        await self.db.flush()
        await self.redis.delete(redis_key)

    # -----------------------------------------------------------------------
    # Email verification
    # -----------------------------------------------------------------------

    async def send_verification(self, user: User) -> None:
        """Store a single-use verification token and mail its link."""
        if user.email_verified:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "EMAIL_ALREADY_VERIFIED", "message": "Email is already verified"},
            )

        token = create_email_verification_token()
        await self.redis.setex(
            email_verify_redis_key(token),
            settings.EMAIL_VERIFY_EXPIRE_SECONDS,
            str(user.id),
        )
        _queue_verification_email(to_email=user.email, verify_token=token)

    async def verify_email(self, token: str) -> MeResponse:
        """Mark the token owner's address as verified and burn the token."""
        redis_key = email_verify_redis_key(token)
        user_id_str = await self.redis.get(redis_key)

        if user_id_str is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_TOKEN", "message": "Verification token is invalid or expired"},
            )

        user = await self.db.get(User, UUID(user_id_str))
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "USER_NOT_FOUND", "message": "User not found"},
            )

        user.email_verified = True
        await self.db.flush()
        await self.redis.delete(redis_key)
        logger.info("Verified email for user %s", user.id)
        return MeResponse.model_validate(user)

    # -----------------------------------------------------------------------
    # Current user (me)
    # -----------------------------------------------------------------------

    async def get_me(self, user: User) -> MeResponse:
        return MeResponse.model_validate(user)

    async def update_me(self, user: User, data: ProfileUpdateRequest) -> MeResponse:
        """Patch the profile with only the provided fields."""
        for field, value in data.model_dump(exclude_unset=True).items():
            if field in ("name", "welcomed") and value is None:
                continue
            setattr(user, field, value)
        await self.db.flush()
        return MeResponse.model_validate(user)

    async def upload_avatar(
        self, user: User, file: UploadFile, storage: ImageStorage
    ) -> AvatarResponse:
        """
        Store a new profile picture and point avatar_url at it.

        Same checks as the organization logo: images only, non-empty,
        at most AVATAR_MAX_BYTES.
        """
        data = await read_image_upload(file, settings.AVATAR_MAX_BYTES, "Avatar")
        try:
            url = await storage.upload_avatar(
                user_id=user.id,
                data=data,
                filename=file.filename,
                content_type=file.content_type or "application/octet-stream",
            )
        except StorageError:
            raise storage_unavailable("Avatar")

        user.avatar_url = url
        await self.db.flush()
        return AvatarResponse(avatar_url=url)

    # -----------------------------------------------------------------------
    # Helpers shared with the invitation workflow
    # -----------------------------------------------------------------------

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def create_user(
        self,
        email: str,
        password: str,
        name: str,
        phone: str | None = None,
        email_verified: bool = False,
    ) -> User:
        user = User(
            email=email.lower(),
            password_hash=hash_password(password),
            name=name,
            phone=phone,
            email_verified=email_verified,
        )
        self.db.add(user)
        await self.db.flush()
        return user

    async def issue_tokens(self, user: User) -> TokenResponse:
        """
        Create and store access + refresh token pair for a user.

        Stores refresh token JTI in Redis with TTL.
        """
        user_id = str(user.id)

        refresh_token, refresh_jti = create_refresh_token(user_id)
        access_token = create_access_token(user_id)

        ttl_seconds = settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
        await self.redis.setex(
            refresh_token_redis_key(user_id, refresh_jti),
            ttl_seconds,
            "1",
        )

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
