"""
Credential helpers: bcrypt password hashes, signed JWT session tokens,
opaque single-use tokens and the Redis keys that track them.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import bcrypt as _bcrypt
from jose import JWTError, jwt

from agencyos.core.config import settings

TokenType = Literal["access", "refresh"]

# bcrypt ignores everything past 72 bytes
_BCRYPT_MAX_BYTES = 72
_BCRYPT_ROUNDS = 12


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    hashed = _bcrypt.hashpw(_password_bytes(password), _bcrypt.gensalt(rounds=_BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return _bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def _sign(user_id: str, token_type: TokenType, lifetime: timedelta) -> tuple[str, str]:
    issued_at = datetime.now(UTC)
    jti = uuid.uuid4().hex
    claims: dict[str, Any] = {
        "sub": user_id,
        "jti": jti,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM), jti


def create_access_token(user_id: str) -> str:
    token, _ = _sign(
        user_id, "access", timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return token


def create_refresh_token(user_id: str) -> tuple[str, str]:
    """
    Issue a refresh token.

    Returns (token, jti). The jti is what gets stored in Redis, so a
    refresh token is only honoured while its key exists.
    """
    return _sign(user_id, "refresh", timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str, expected_type: TokenType) -> dict[str, Any]:
    """
    Verify signature and expiry, then check the token type claim.

    Raises:
        JWTError: on a bad signature, an expired token or the wrong type.
    """
    claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if claims.get("type") != expected_type:
        raise JWTError(f"Expected a {expected_type} token")
    return claims


def decode_access_token(token: str) -> dict[str, Any]:
    return decode_token(token, "access")


def decode_refresh_token(token: str) -> dict[str, Any]:
    return decode_token(token, "refresh")


# ---------------------------------------------------------------------------
# Redis keys
# ---------------------------------------------------------------------------

def refresh_token_redis_key(user_id: str, jti: str) -> str:
    return f"agencyos:refresh:{user_id}:{jti}"


def blacklist_redis_key(jti: str) -> str:
    return f"agencyos:revoked:{jti}"


def password_reset_redis_key(token: str) -> str:
    return f"agencyos:pwd_reset:{token}"


def email_verify_redis_key(token: str) -> str:
    return f"agencyos:email_verify:{token}"


# ---------------------------------------------------------------------------
# Opaque tokens
# ---------------------------------------------------------------------------

def create_password_reset_token() -> str:
    return secrets.token_urlsafe(24)


def create_email_verification_token() -> str:
    return secrets.token_urlsafe(24)


def create_invite_token() -> str:
    """Unguessable, URL-safe token embedded in invitation links."""
    return secrets.token_urlsafe(32)
