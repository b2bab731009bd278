"""
Invitation endpoints.

Admin side, under an organization:
POST   /organizations/{org_id}/invites                     - invite a team member
GET    /organizations/{org_id}/invites                     - list invites (pending by default)
POST   /organizations/{org_id}/invites/{invite_id}/resend  - new token, new expiry
DELETE /organizations/{org_id}/invites/{invite_id}         - revoke

Public, by token:
GET    /invites/{token}           - validate and describe
POST   /invites/{token}/accept    - sign in or sign up, then join
POST   /invites/{token}/decline
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.database import get_db
from agencyos.core.dependencies import get_current_user, get_redis, require_admin
from agencyos.models.invite import InviteStatus
from agencyos.models.member import TeamMember
from agencyos.models.organization import Organization
from agencyos.models.user import User
from agencyos.schemas.invite import (
    InviteAcceptRequest,
    InviteAcceptResponse,
    InviteInfoResponse,
    InviteRequest,
    InviteResponse,
    InvitesListResponse,
)
from agencyos.services.invite_service import InviteService

router = APIRouter()


def get_invite_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> InviteService:
    """Dependency that constructs InviteService."""
    return InviteService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Invite Team Member
# ---------------------------------------------------------------------------

@router.post(
    "/organizations/{org_id}/invites",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a team member",
)
async def invite_team_member(
    data: InviteRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(require_admin),
    current_user: User = Depends(get_current_user),
    service: InviteService = Depends(get_invite_service),
) -> InviteResponse:
    """
    Invite someone to the organization by email.

    - Requires Owner or Admin role
    - Role is admin or member
    - Sends invitation email via Celery
    - Link expires in 7 days
    """
    org, _ = org_and_member
    return await service.invite_team_member(org, data, current_user)


@router.get(
    "/organizations/{org_id}/invites",
    response_model=InvitesListResponse,
    summary="List invitations",
)
async def list_invites(
    invite_status: InviteStatus | None = Query(default=InviteStatus.pending, alias="status"),
    org_and_member: tuple[Organization, TeamMember] = Depends(require_admin),
    service: InviteService = Depends(get_invite_service),
) -> InvitesListResponse:
    org, _ = org_and_member
    return await service.list_invites(org.id, invite_status)


@router.post(
    "/organizations/{org_id}/invites/{invite_id}/resend",
    response_model=InviteResponse,
    summary="Resend an invitation",
)
async def resend_invite(
    invite_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(require_admin),
    current_user: User = Depends(get_current_user),
    service: InviteService = Depends(get_invite_service),
) -> InviteResponse:
    """Issues a fresh token and expiry; earlier links stop working."""
    org, _ = org_and_member
    return await service.resend_invite(org, invite_id, current_user)


@router.delete(
    "/organizations/{org_id}/invites/{invite_id}",
    response_model=InviteResponse,
    summary="Revoke an invitation",
)
async def revoke_invite(
    invite_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(require_admin),
    service: InviteService = Depends(get_invite_service),
) -> InviteResponse:
    org, _ = org_and_member
    return await service.revoke_invite(org.id, invite_id)


# ---------------------------------------------------------------------------
# Public token endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/invites/{token}",
    response_model=InviteInfoResponse,
    summary="Validate an invitation link",
)
async def validate_invite(
    token: str,
    service: InviteService = Depends(get_invite_service),
) -> InviteInfoResponse:
    return await service.validate_invite(token)


@router.post(
    "/invites/{token}/accept",
    response_model=InviteAcceptResponse,
    summary="Accept an invitation",
)
async def accept_invite(
    token: str,
    data: InviteAcceptRequest,
    service: InviteService = Depends(get_invite_service),
) -> InviteAcceptResponse:
    """
    Accept an invitation.

    - Existing accounts must supply their current password
    - New accounts are created with the supplied name and password
    """
    return await service.accept_invite(token, data)


@router.post(
    "/invites/{token}/decline",
    status_code=status.HTTP_200_OK,
    summary="Decline an invitation",
)
async def decline_invite(
    token: str,
    service: InviteService = Depends(get_invite_service),
) -> dict:
    await service.decline_invite(token)
    return {}
