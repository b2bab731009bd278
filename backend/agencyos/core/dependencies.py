"""
FastAPI dependency injection functions.

Provides Redis connections, current user, organization membership and
role enforcement.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.config import settings
from agencyos.core.database import get_db
from agencyos.core.security import blacklist_redis_key, decode_access_token
from agencyos.models.member import MemberRole, MemberStatus, TeamMember
from agencyos.models.organization import Organization
from agencyos.models.user import User

# ---------------------------------------------------------------------------
# HTTP Bearer scheme (auto_error=False so we can return custom 401)
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)

# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Return a shared async Redis client, created on first use."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            str(settings.REDIS_URL),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_pool


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

async def get_access_payload(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    redis: aioredis.Redis = Depends(get_redis),
) -> dict:
    """
    Decode the Bearer access token and reject revoked ones.

    Raises 401 if no token is provided, the token is invalid or expired,
    or its JTI is blacklisted.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "MISSING_TOKEN", "message": "Authorization header required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "INVALID_TOKEN", "message": "Token is invalid or expired"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    if await redis.exists(blacklist_redis_key(payload.get("jti", ""))):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "TOKEN_REVOKED", "message": "Token has been revoked"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


async def get_current_user(
    payload: dict = Depends(get_access_payload),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Return the authenticated, active User for the request's access token."""
    result = await db.execute(select(User).where(User.id == UUID(payload.get("sub", ""))))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "USER_NOT_FOUND", "message": "User not found or inactive"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


# ---------------------------------------------------------------------------
# Organization membership + role enforcement
# ---------------------------------------------------------------------------

async def get_org_member(
    org_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> tuple[Organization, TeamMember]:
    """
    Resolve the organization from the path and verify the current user
    is an active member of it.

    Returns (organization, team_member) tuple.
    Raises 404 if the organization does not exist, 403 if the user has no
    active membership.
    """
    org = await db.get(Organization, org_id)

    if org is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "ORG_NOT_FOUND", "message": "Organization not found"},
        )

    member_result = await db.execute(
        select(TeamMember).where(
            TeamMember.organization_id == org.id,
            TeamMember.user_id == current_user.id,
            TeamMember.status == MemberStatus.active,
        )
    )
    member = member_result.scalar_one_or_none()

    if member is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "NOT_A_MEMBER", "message": "You are not a member of this organization"},
        )

    return org, member


def require_role(*roles: MemberRole):
    """
    Dependency factory that restricts an endpoint to the given roles.

    Usage:
        @router.post("/...")
        async def endpoint(
            org_and_member: tuple = Depends(require_role(MemberRole.owner, MemberRole.admin)),
        ):
            org, member = org_and_member
    """
    async def role_checker(
        org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    ) -> tuple[Organization, TeamMember]:
        _, member = org_and_member
        if member.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "INSUFFICIENT_ROLE",
                    "message": f"Required role: {[r.value for r in roles]}",
                },
            )
        return org_and_member

    return role_checker


require_admin = require_role(MemberRole.owner, MemberRole.admin)
