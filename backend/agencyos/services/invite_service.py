"""
Invitation workflow.

Admin side: invite, list, revoke, resend.
Public side (token in the URL): validate, accept, decline.

Invites are never deleted; revocation and decline are status changes.
Expiry is derived from expires_at at read time.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.config import settings
from agencyos.core.security import create_invite_token
from agencyos.models.base import utcnow
from agencyos.models.invite import Invite, InviteRole, InviteStatus
from agencyos.models.member import MemberRole, MemberStatus, TeamMember
from agencyos.models.notification import NotificationType
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
from agencyos.schemas.notification import NotificationCreate
from agencyos.services.auth_service import AuthService
from agencyos.services.notification_service import NotificationService
from agencyos.services.organization_service import OrganizationService

logger = logging.getLogger(__name__)


def _queue_invite_email(invite_id: str) -> None:
    """
    Enqueue the invitation email. The worker loads the invite itself, so
    a resend before delivery still mails the current token.
    Import is deferred to avoid circular imports at module load.
    """
    from agencyos.workers.email_tasks import send_invite_email
    send_invite_email.delay(invite_id=invite_id)


class InviteService:
    """Handles team invitations from creation to acceptance."""

    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # Invite Team Member
    # -----------------------------------------------------------------------

    async def invite_team_member(
        self, org: Organization, data: InviteRequest, inviter: User
    ) -> InviteResponse:
        """
        Create an invitation and notify the invitee.

        Guards, all checked before anything is written:
        - Team invites are enabled for the organization
        - No pending invite exists for this email, expired or not
        - The email does not belong to an active member

        The invite is committed before the notifier is queued; a notifier
        failure is reported as 502 but the invite stays.
        """
        email = data.email.lower()

        org_settings = await OrganizationService(self.db).get_settings(org.id)
        if not org_settings.allow_team_invites:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "TEAM_INVITES_DISABLED",
                    "message": "Team invitations are disabled for this organization",
                },
            )

        await self._ensure_no_pending_invite(org.id, email)
        await self._ensure_not_active_member(org.id, email)

        invite = Invite(
            organization_id=org.id,
            email=email,
            name=data.name,
            department=data.department,
            role=data.role,
            status=InviteStatus.pending,
            token=create_invite_token(),
            invited_by=inviter.id,
            invited_at=utcnow(),
            expires_at=utcnow() + timedelta(days=settings.INVITE_EXPIRE_DAYS),
        )
        self.db.add(invite)
        await self.db.flush()
        await self.db.commit()
        logger.info("Invite %s created for organization %s", invite.id, org.id)

        self._notify_invitee(invite)
        return InviteResponse.model_validate(invite)

    # -----------------------------------------------------------------------
    # List / Revoke / Resend
    # -----------------------------------------------------------------------

    async def list_invites(
        self, org_id: UUID, invite_status: InviteStatus | None = InviteStatus.pending
    ) -> InvitesListResponse:
        stmt = select(Invite).where(Invite.organization_id == org_id)
        if invite_status is not None:
            stmt = stmt.where(Invite.status == invite_status)
        result = await self.db.execute(stmt.order_by(Invite.invited_at.desc()))
        invites = [InviteResponse.model_validate(i) for i in result.scalars().all()]
        return InvitesListResponse(invites=invites, total=len(invites))

    async def revoke_invite(self, org_id: UUID, invite_id: UUID) -> InviteResponse:
        """Mark an invite revoked. The row and its token stay for the audit trail."""
        invite = await self._get_invite(org_id, invite_id)

        if invite.status == InviteStatus.accepted:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "code": "INVITE_ALREADY_ACCEPTED",
                    "message": "An accepted invitation cannot be revoked",
                },
            )

        invite.status = InviteStatus.revoked
        await self.db.flush()
        logger.info("Invite %s revoked", invite.id)
        return InviteResponse.model_validate(invite)

    async def resend_invite(
        self, org: Organization, invite_id: UUID, inviter: User
    ) -> InviteResponse:
        """
        Re-issue an invite.

        - New token, so earlier links stop working
        - New expiry window
        - Status back to pending
        - The admin who resends becomes the inviter named in the email
        """
        invite = await self._get_invite(org.id, invite_id)

        if invite.status == InviteStatus.accepted:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "code": "INVITE_ALREADY_ACCEPTED",
                    "message": "This invitation has already been accepted",
                },
            )
        if invite.status != InviteStatus.pending:
            await self._ensure_no_pending_invite(org.id, invite.email)
        await self._ensure_not_active_member(org.id, invite.email)

        invite.token = create_invite_token()
        invite.status = InviteStatus.pending
        invite.invited_at = utcnow()
        invite.invited_by = inviter.id
        invite.expires_at = utcnow() + timedelta(days=settings.INVITE_EXPIRE_DAYS)
        await self.db.flush()
        await self.db.commit()

        self._notify_invitee(invite)
        return InviteResponse.model_validate(invite)

    # -----------------------------------------------------------------------
    # Public: validate / accept / decline by token
    # -----------------------------------------------------------------------

    async def validate_invite(self, token: str) -> InviteInfoResponse:
        """Describe a still-acceptable invite for the landing page."""
        invite = await self._get_acceptable_invite(token)
        org = await self.db.get(Organization, invite.organization_id)
        inviter = await self.db.get(User, invite.invited_by) if invite.invited_by else None

        return InviteInfoResponse(
            email=invite.email,
            name=invite.name,
            department=invite.department,
            role=invite.role,
            organization_id=org.id,
            organization_name=org.name,
            organization_logo_url=org.logo_url,
            invited_by_name=inviter.name if inviter else None,
            expires_at=invite.expires_at,
        )

    async def accept_invite(
        self, token: str, data: InviteAcceptRequest
    ) -> InviteAcceptResponse:
        """
        Accept an invitation.

        - Token must exist, be pending and not expired
        - Signs in with the invite email if that account exists,
          otherwise creates the account
        - Creates (or reactivates) the membership with the invite's role
        - Marks the invite accepted and fills in the profile
        - Lets the inviter know

        Every write happens in the request transaction.
        """
        invite = await self._get_acceptable_invite(token)

        if invite.role == InviteRole.client:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "code": "INVITE_ROLE_UNSUPPORTED",
                    "message": "Client invitations cannot be accepted as team membership",
                },
            )

        auth = AuthService(self.db, self.redis)
        user = await auth.get_user_by_email(invite.email)
        if user is None:
            user = await auth.create_user(
                email=invite.email,
                password=data.password,
                name=data.name,
                phone=data.phone,
                email_verified=True,
            )
        else:
            user = await auth.authenticate(invite.email, data.password)

        result = await self.db.execute(
            select(TeamMember).where(
                TeamMember.organization_id == invite.organization_id,
                TeamMember.user_id == user.id,
            )
        )
        member = result.scalar_one_or_none()

        if member is not None and member.status == MemberStatus.active:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "ALREADY_MEMBER", "message": "You are already a member of this organization"},
            )

        if member is None:
            member = TeamMember(
                organization_id=invite.organization_id,
                user_id=user.id,
            )
            self.db.add(member)
        member.role = MemberRole(invite.role.value)
        member.status = MemberStatus.active
        member.invited_by = invite.invited_by
        member.invited_at = invite.invited_at
        member.joined_at = utcnow()

        invite.status = InviteStatus.accepted

        user.name = data.name
        if data.phone is not None:
            user.phone = data.phone
        if invite.department is not None:
            user.department = invite.department

        await self.db.flush()

        if invite.invited_by is not None:
            org = await self.db.get(Organization, invite.organization_id)
            await NotificationService(self.db).create(
                NotificationCreate(
                    user_id=invite.invited_by,
                    organization_id=invite.organization_id,
                    type=NotificationType.success,
                    title="Invitation accepted",
                    message=f"{user.name} joined {org.name}",
                    link="/team",
                )
            )

        logger.info("Invite %s accepted by user %s", invite.id, user.id)
        tokens = await auth.issue_tokens(user)
        return InviteAcceptResponse(
            **tokens.model_dump(),
            organization_id=invite.organization_id,
            member_id=member.id,
            role=member.role.value,
        )

    async def decline_invite(self, token: str) -> None:
        invite = await self._get_acceptable_invite(token)
        invite.status = InviteStatus.declined
        await self.db.flush()
        logger.info("Invite %s declined", invite.id)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _get_invite(self, org_id: UUID, invite_id: UUID) -> Invite:
        result = await self.db.execute(
            select(Invite).where(
                Invite.id == invite_id,
                Invite.organization_id == org_id,
            )
        )
        invite = result.scalar_one_or_none()
        if invite is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "INVITE_NOT_FOUND", "message": "Invitation not found"},
            )
        return invite

    async def _get_acceptable_invite(self, token: str) -> Invite:
        result = await self.db.execute(select(Invite).where(Invite.token == token))
        invite = result.scalar_one_or_none()

        if invite is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "INVITE_NOT_FOUND", "message": "Invalid invitation link"},
            )
        if invite.status != InviteStatus.pending:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "code": "INVITE_NOT_PENDING",
                    "message": f"This invitation has already been {invite.status.value}",
                },
            )
        if invite.is_expired:
            raise HTTPException(
                status_code=status.HTTP_410_GONE,
                detail={"code": "INVITE_EXPIRED", "message": "This invitation has expired"},
            )
        return invite

    async def _ensure_no_pending_invite(self, org_id: UUID, email: str) -> None:
        result = await self.db.execute(
            select(Invite.id).where(
                Invite.organization_id == org_id,
                Invite.email == email,
                Invite.status == InviteStatus.pending,
            )
        )
        if result.first() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "code": "INVITE_EXISTS",
                    "message": "An invitation is already pending for this email. Resend it instead.",
                },
            )

    async def _ensure_not_active_member(self, org_id: UUID, email: str) -> None:
        result = await self.db.execute(
            select(TeamMember.id)
            .join(User, TeamMember.user_id == User.id)
            .where(
                TeamMember.organization_id == org_id,
                TeamMember.status == MemberStatus.active,
                User.email == email,
            )
        )
        if result.first() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "ALREADY_MEMBER", "message": "User is already a member of this organization"},
            )

    def _notify_invitee(self, invite: Invite) -> None:
        try:
            _queue_invite_email(invite_id=str(invite.id))
        except Exception:
            logger.exception("Could not queue invite email for invite %s", invite.id)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={
                    "code": "INVITE_NOTIFY_FAILED",
                    "message": "The invitation was saved but the email could not be sent. Try resending it.",
                },
            )
