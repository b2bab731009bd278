"""
Organization management endpoints.

Create, update, settings, logo, member management.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.database import get_db
from agencyos.core.dependencies import get_current_user, get_org_member, require_admin
from agencyos.core.storage import ImageStorage, get_storage
from agencyos.models.member import TeamMember
from agencyos.models.organization import Organization
from agencyos.models.user import User
from agencyos.schemas.organization import (
    LogoResponse,
    MemberResponse,
    MemberRoleUpdateRequest,
    MembersListResponse,
    OrganizationCreateRequest,
    OrganizationResponse,
    OrganizationsListResponse,
    OrganizationUpdateRequest,
    SettingsResponse,
    SettingsUpdateRequest,
)
from agencyos.services.organization_service import OrganizationService

router = APIRouter()


def get_org_service(db: AsyncSession = Depends(get_db)) -> OrganizationService:
    """Dependency that constructs OrganizationService."""
    return OrganizationService(db=db)


# ---------------------------------------------------------------------------
# Create / List Organizations
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new organization",
)
async def create_organization(
    data: OrganizationCreateRequest,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """
    Create a new organization.

    - Default settings row is created alongside it
    - Creator is automatically assigned the Owner role
    """
    return await service.create_organization(data, current_user)


@router.get(
    "",
    response_model=OrganizationsListResponse,
    summary="List organizations the current user belongs to",
)
async def list_organizations(
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationsListResponse:
    return await service.list_organizations(current_user)


# ---------------------------------------------------------------------------
# Get / Update Organization
# ---------------------------------------------------------------------------

@router.get(
    "/{org_id}",
    response_model=OrganizationResponse,
    summary="Get organization with settings and address",
)
async def get_organization(
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """Get organization details. Must be a member."""
    org, _ = org_and_member
    return await service.get_organization(org)


@router.patch(
    "/{org_id}",
    response_model=OrganizationResponse,
    summary="Update organization details and address",
)
async def update_organization(
    data: OrganizationUpdateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(require_admin),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """Only fields present in the body are changed. Requires Owner or Admin role."""
    org, _ = org_and_member
    return await service.update_organization(org, data)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@router.patch(
    "/{org_id}/settings",
    response_model=SettingsResponse,
    summary="Update organization settings",
)
async def update_settings(
    data: SettingsUpdateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(require_admin),
    service: OrganizationService = Depends(get_org_service),
) -> SettingsResponse:
    org, _ = org_and_member
    return await service.update_settings(org, data)


# ---------------------------------------------------------------------------
# Logo
# ---------------------------------------------------------------------------

@router.post(
    "/{org_id}/logo",
    response_model=LogoResponse,
    summary="Upload the organization logo",
)
async def upload_logo(
    file: UploadFile = File(...),
    org_and_member: tuple[Organization, TeamMember] = Depends(require_admin),
    storage: ImageStorage = Depends(get_storage),
    service: OrganizationService = Depends(get_org_service),
) -> LogoResponse:
    """
    Upload an image (max 2MB) and set it as the logo.

    Returns the public URL, which is also stored on the organization.
    """
    org, _ = org_and_member
    return await service.upload_logo(org, file, storage)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@router.get(
    "/{org_id}/members",
    response_model=MembersListResponse,
    summary="List organization members",
)
async def list_members(
    include_inactive: bool = Query(default=False),
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: OrganizationService = Depends(get_org_service),
) -> MembersListResponse:
    org, _ = org_and_member
    return await service.list_members(org.id, include_inactive=include_inactive)


@router.patch(
    "/{org_id}/members/{member_id}",
    response_model=MemberResponse,
    summary="Update a member's role",
)
async def update_member_role(
    member_id: UUID,
    data: MemberRoleUpdateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(require_admin),
    service: OrganizationService = Depends(get_org_service),
) -> MemberResponse:
    """
    Change a member's role.

    - Role must be admin or member
    - The owner's role can never change
    """
    org, _ = org_and_member
    return await service.update_member_role(org.id, member_id, data.role)


@router.delete(
    "/{org_id}/members/{member_id}",
    response_model=MemberResponse,
    summary="Remove a member from the organization",
)
async def remove_member(
    member_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(require_admin),
    service: OrganizationService = Depends(get_org_service),
) -> MemberResponse:
    """
    Remove a member. The membership is marked inactive, not deleted.

    - Cannot remove the owner
    """
    org, _ = org_and_member
    return await service.remove_member(org.id, member_id)
