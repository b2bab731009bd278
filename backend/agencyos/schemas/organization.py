"""
Organization schemas.

Request/response models for organization, settings and member management.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from agencyos.models.member import MemberRole, MemberStatus
from agencyos.models.organization import TaskView


# ---------------------------------------------------------------------------
# Address / Settings
# ---------------------------------------------------------------------------

class AddressSchema(BaseModel):
    """Structured postal address, used both in requests and responses."""

    street: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    zip_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)

    model_config = {"from_attributes": True}


class SettingsResponse(BaseModel):
    allow_client_invites: bool
    allow_team_invites: bool
    default_task_view: TaskView
    brand_color: str

    model_config = {"from_attributes": True}


class SettingsUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{org_id}/settings."""

    allow_client_invites: bool | None = None
    allow_team_invites: bool | None = None
    default_task_view: TaskView | None = None
    brand_color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------

class OrganizationCreateRequest(BaseModel):
    """Request body for POST /organizations."""

    name: str = Field(min_length=2, max_length=100)


class OrganizationUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{org_id}. Patch semantics."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    tax_id: str | None = Field(default=None, max_length=50)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    address: AddressSchema | None = None


class OrganizationResponse(BaseModel):
    """Organization detail response."""

    id: UUID
    name: str
    email: str | None
    phone: str | None
    tax_id: str | None
    currency: str | None
    logo_url: str | None
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime
    settings: SettingsResponse | None = None
    address: AddressSchema | None = None

    model_config = {"from_attributes": True}


class OrganizationSummary(BaseModel):
    """Organization as listed for the current user, with their role."""

    id: UUID
    name: str
    logo_url: str | None
    role: MemberRole


class OrganizationsListResponse(BaseModel):
    organizations: list[OrganizationSummary]
    total: int


class LogoResponse(BaseModel):
    logo_url: str


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class MemberResponse(BaseModel):
    """Single team member with user info, role and status."""

    id: UUID
    user_id: UUID
    email: str
    name: str
    avatar_url: str | None
    department: str | None
    role: MemberRole
    status: MemberStatus
    joined_at: datetime


class MemberRoleUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{org_id}/members/{member_id}."""

    role: MemberRole

    @field_validator("role")
    @classmethod
    def owner_not_assignable(cls, v: MemberRole) -> MemberRole:
        if v == MemberRole.owner:
            raise ValueError("Role must be admin or member")
        return v


class MembersListResponse(BaseModel):
    """Response for GET /organizations/{org_id}/members."""

    members: list[MemberResponse]
    total: int
