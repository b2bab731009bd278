"""
Invitation schemas.

Admin-side invite management plus the public token endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from agencyos.models.invite import InviteRole, InviteStatus
from agencyos.schemas.auth import TokenResponse, _password_must_contain_number


# ---------------------------------------------------------------------------
# Admin side
# ---------------------------------------------------------------------------

class InviteRequest(BaseModel):
    """Request body for POST /organizations/{org_id}/invites."""

    email: EmailStr
    role: InviteRole = InviteRole.member
    name: str | None = Field(default=None, max_length=100)
    department: str | None = Field(default=None, max_length=100)

    @field_validator("role")
    @classmethod
    def team_roles_only(cls, v: InviteRole) -> InviteRole:
        if v not in (InviteRole.admin, InviteRole.member):
            raise ValueError("Team invites can only grant the admin or member role")
        return v


class InviteResponse(BaseModel):
    """Invite detail response."""

    id: UUID
    organization_id: UUID
    email: str
    name: str | None
    department: str | None
    role: InviteRole
    status: InviteStatus
    token: str
    invited_by: UUID | None
    invited_at: datetime
    expires_at: datetime
    is_expired: bool

    model_config = {"from_attributes": True}


class InvitesListResponse(BaseModel):
    invites: list[InviteResponse]
    total: int


# ---------------------------------------------------------------------------
# Public token endpoints
# ---------------------------------------------------------------------------

class InviteInfoResponse(BaseModel):
    """What the invite landing page shows before the user accepts."""

    email: str
    name: str | None
    department: str | None
    role: InviteRole
    organization_id: UUID
    organization_name: str
    organization_logo_url: str | None
    invited_by_name: str | None
    expires_at: datetime


class InviteAcceptRequest(BaseModel):
    """Request body for POST /invites/{token}/accept."""

    name: str = Field(min_length=2, max_length=100)
    password: str = Field(min_length=8, max_length=128)
    confirm_password: str
    phone: str | None = Field(default=None, max_length=50)

    @field_validator("password")
    @classmethod
    def password_must_contain_number(cls, v: str) -> str:
        return _password_must_contain_number(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "InviteAcceptRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class InviteAcceptResponse(TokenResponse):
    """Tokens for the (possibly new) account plus the joined organization."""

    organization_id: UUID
    member_id: UUID
    role: str
