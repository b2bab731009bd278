"""
Organization business logic.

Handles organization creation, settings, address, logo and member management.
Owner protection lives here and nowhere else.
All queries scoped by organization_id.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.config import settings
from agencyos.core.storage import ImageStorage, StorageError
from agencyos.models.member import MemberRole, MemberStatus, TeamMember
from agencyos.models.organization import (
    Organization,
    OrganizationAddress,
    OrganizationSettings,
)
from agencyos.models.user import User
from agencyos.schemas.organization import (
    AddressSchema,
    LogoResponse,
    MemberResponse,
    MembersListResponse,
    OrganizationCreateRequest,
    OrganizationResponse,
    OrganizationsListResponse,
    OrganizationSummary,
    OrganizationUpdateRequest,
    SettingsResponse,
    SettingsUpdateRequest,
)
from agencyos.services.uploads import read_image_upload, storage_unavailable

logger = logging.getLogger(__name__)


class OrganizationService:
    """Handles all organization operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Create Organization
    # -----------------------------------------------------------------------

    async def create_organization(
        self, data: OrganizationCreateRequest, owner: User
    ) -> OrganizationResponse:
        """
        Create a new organization.

        - Creates organization record
        - Creates the settings row with defaults
        - Assigns creator as active Owner

        All three rows are written in the request transaction, so a failure
        in any step leaves none of them behind.
        """
        org = Organization(name=data.name, created_by=owner.id)
        self.db.add(org)
        await self.db.flush()

        org_settings = OrganizationSettings(organization_id=org.id)
        member = TeamMember(
            organization_id=org.id,
            user_id=owner.id,
            role=MemberRole.owner,
            status=MemberStatus.active,
        )
        self.db.add_all([org_settings, member])
        await self.db.flush()

        logger.info("Organization %s created by user %s", org.id, owner.id)
        return self._to_response(org, org_settings, None)

    # -----------------------------------------------------------------------
    # List / Get Organization
    # -----------------------------------------------------------------------

    async def list_organizations(self, user: User) -> OrganizationsListResponse:
        """Organizations where the user holds an active membership."""
        result = await self.db.execute(
            select(Organization, TeamMember.role)
            .join(TeamMember, TeamMember.organization_id == Organization.id)
            .where(
                TeamMember.user_id == user.id,
                TeamMember.status == MemberStatus.active,
            )
            .order_by(Organization.created_at)
        )
        organizations = [
            OrganizationSummary(id=org.id, name=org.name, logo_url=org.logo_url, role=role)
            for org, role in result.all()
        ]
        return OrganizationsListResponse(organizations=organizations, total=len(organizations))

    async def get_organization(self, org: Organization) -> OrganizationResponse:
        org_settings = await self.db.get(OrganizationSettings, org.id)
        address = await self.db.get(OrganizationAddress, org.id)
        return self._to_response(org, org_settings, address)

    # -----------------------------------------------------------------------
    # Update Organization
    # -----------------------------------------------------------------------

    async def update_organization(
        self, org: Organization, data: OrganizationUpdateRequest
    ) -> OrganizationResponse:
        """
        Patch the organization.

        Only provided fields are written. The address, when present, is
        upserted into its own row.
        """
        changes = data.model_dump(exclude_unset=True, exclude={"address"})
        if changes.get("name", org.name) is None:
            changes.pop("name")
        for field, value in changes.items():
            setattr(org, field, value)

        address = await self.db.get(OrganizationAddress, org.id)
        if data.address is not None:
            if address is None:
                address = OrganizationAddress(organization_id=org.id)
                self.db.add(address)
            for field, value in data.address.model_dump(exclude_unset=True).items():
                setattr(address, field, value)

        await self.db.flush()
        org_settings = await self.db.get(OrganizationSettings, org.id)
        return self._to_response(org, org_settings, address)

    # -----------------------------------------------------------------------
    # Settings
    # -----------------------------------------------------------------------

    async def get_settings(self, org_id: UUID) -> OrganizationSettings:
        """Return the settings row, creating it with defaults if missing."""
        org_settings = await self.db.get(OrganizationSettings, org_id)
        if org_settings is None:
            org_settings = OrganizationSettings(organization_id=org_id)
            self.db.add(org_settings)
            await self.db.flush()
        return org_settings

    async def update_settings(
        self, org: Organization, data: SettingsUpdateRequest
    ) -> SettingsResponse:
        org_settings = await self.get_settings(org.id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(org_settings, field, value)
        await self.db.flush()
        return SettingsResponse.model_validate(org_settings)

    # -----------------------------------------------------------------------
    # Logo
    # -----------------------------------------------------------------------

    async def upload_logo(
        self, org: Organization, file: UploadFile, storage: ImageStorage
    ) -> LogoResponse:
        """
        Store a logo image and point the organization at it.

        - Accepts image/* content types only
        - Rejects files larger than LOGO_MAX_BYTES
        - logo_url is set to exactly the URL returned by storage
        """
        data = await read_image_upload(file, settings.LOGO_MAX_BYTES, "Logo")
        try:
            url = await storage.upload_logo(org.id, data, file.filename, file.content_type)
        except StorageError:
            raise storage_unavailable("Logo")

        org.logo_url = url
        await self.db.flush()
        return LogoResponse(logo_url=url)

    # -----------------------------------------------------------------------
    # Members
    # -----------------------------------------------------------------------

    async def list_members(
        self, org_id: UUID, include_inactive: bool = False
    ) -> MembersListResponse:
        """List members of an organization with user details."""
        stmt = (
            select(TeamMember, User)
            .join(User, TeamMember.user_id == User.id)
            .where(TeamMember.organization_id == org_id)
            .order_by(TeamMember.joined_at)
        )
        if not include_inactive:
            stmt = stmt.where(TeamMember.status == MemberStatus.active)

        result = await self.db.execute(stmt)
        members = [self._member_response(member, user) for member, user in result.all()]
        return MembersListResponse(members=members, total=len(members))

    async def update_member_role(
        self, org_id: UUID, member_id: UUID, role: MemberRole
    ) -> MemberResponse:
        """
        Change a member's role to admin or member.

        - Cannot change the owner's role
        - Nobody can be promoted to owner
        """
        member = await self._get_member(org_id, member_id)

        if member.role == MemberRole.owner:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "CANNOT_CHANGE_OWNER",
                    "message": "Cannot change the role of the organization owner",
                },
            )
        if role == MemberRole.owner:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_ROLE", "message": "Role must be admin or member"},
            )

        member.role = role
        await self.db.flush()

        user = await self.db.get(User, member.user_id)
        return self._member_response(member, user)

    async def remove_member(self, org_id: UUID, member_id: UUID) -> MemberResponse:
        """
        Remove a member by marking the membership inactive.

        - Cannot remove the owner
        - The row is kept so history stays attributable
        """
        member = await self._get_member(org_id, member_id)

        if member.role == MemberRole.owner:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "CANNOT_REMOVE_OWNER",
                    "message": "Cannot remove the organization owner",
                },
            )

        member.status = MemberStatus.inactive
        await self.db.flush()
        logger.info("Member %s removed from organization %s", member.id, org_id)

        user = await self.db.get(User, member.user_id)
        return self._member_response(member, user)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _get_member(self, org_id: UUID, member_id: UUID) -> TeamMember:
        result = await self.db.execute(
            select(TeamMember).where(
                TeamMember.id == member_id,
                TeamMember.organization_id == org_id,
            )
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEMBER_NOT_FOUND", "message": "Member not found"},
            )
        return member

    @staticmethod
    def _member_response(member: TeamMember, user: User) -> MemberResponse:
        return MemberResponse(
            id=member.id,
            user_id=member.user_id,
            email=user.email,
            name=user.name,
            avatar_url=user.avatar_url,
            department=user.department,
            role=member.role,
            status=member.status,
            joined_at=member.joined_at,
        )

    @staticmethod
    def _to_response(
        org: Organization,
        org_settings: OrganizationSettings | None,
        address: OrganizationAddress | None,
    ) -> OrganizationResponse:
        return OrganizationResponse(
            id=org.id,
            name=org.name,
            email=org.email,
            phone=org.phone,
            tax_id=org.tax_id,
            currency=org.currency,
            logo_url=org.logo_url,
            created_by=org.created_by,
            created_at=org.created_at,
            updated_at=org.updated_at,
            settings=SettingsResponse.model_validate(org_settings) if org_settings else None,
            address=AddressSchema.model_validate(address) if address else None,
        )
