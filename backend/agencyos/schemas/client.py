"""
Client schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from agencyos.models.client import ClientStatus


class ClientCreateRequest(BaseModel):
    """Request body for POST /organizations/{org_id}/clients."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    contact_person: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    street: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    zip_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    status: ClientStatus = ClientStatus.active


class ClientUpdateRequest(BaseModel):
    """Patch semantics: only provided fields are written."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    contact_person: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    street: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    zip_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    status: ClientStatus | None = None


class ClientResponse(BaseModel):
    id: UUID
    organization_id: UUID
    name: str
    email: str | None
    phone: str | None
    contact_person: str | None
    notes: str | None
    street: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    country: str | None
    status: ClientStatus
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ClientListResponse(BaseModel):
    data: list[ClientResponse]
    total: int
