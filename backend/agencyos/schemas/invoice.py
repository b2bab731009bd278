"""
Invoice schemas.

Totals never come from the client; they are computed from the items.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from agencyos.models.invoice import InvoiceStatus


class InvoiceItemSchema(BaseModel):
    description: str = Field(min_length=1, max_length=500)
    quantity: float = Field(gt=0)
    unit_price: float = Field(ge=0)


class InvoiceItemResponse(BaseModel):
    id: UUID
    description: str
    quantity: float
    unit_price: float
    amount: float

    model_config = {"from_attributes": True}


class InvoiceCreateRequest(BaseModel):
    """Request body for POST /organizations/{org_id}/invoices."""

    client_id: UUID
    issue_date: date
    due_date: date
    items: list[InvoiceItemSchema] = Field(min_length=1)
    tax_rate: float = Field(default=0.0, ge=0, le=100)
    discount: float = Field(default=0.0, ge=0)
    notes: str | None = None
    terms: str | None = None
    status: InvoiceStatus = InvoiceStatus.draft

    @model_validator(mode="after")
    def due_after_issue(self) -> "InvoiceCreateRequest":
        if self.due_date < self.issue_date:
            raise ValueError("Due date cannot be before the issue date")
        return self


class InvoiceUpdateRequest(BaseModel):
    """Patch semantics. Totals are recomputed after every update."""

    client_id: UUID | None = None
    issue_date: date | None = None
    due_date: date | None = None
    items: list[InvoiceItemSchema] | None = Field(default=None, min_length=1)
    tax_rate: float | None = Field(default=None, ge=0, le=100)
    discount: float | None = Field(default=None, ge=0)
    notes: str | None = None
    terms: str | None = None
    status: InvoiceStatus | None = None


class InvoiceResponse(BaseModel):
    id: UUID
    organization_id: UUID
    number: str
    client_id: UUID | None
    status: InvoiceStatus
    issue_date: date
    due_date: date
    notes: str | None
    terms: str | None
    items: list[InvoiceItemResponse]
    subtotal: float
    tax_rate: float
    tax_amount: float
    discount: float
    total: float
    paid_at: datetime | None
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InvoiceListResponse(BaseModel):
    data: list[InvoiceResponse]
    total: int


class InvoiceSendRequest(BaseModel):
    """Optional recipient override; defaults to the client's email."""

    email: EmailStr | None = None
