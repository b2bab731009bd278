"""
Invoice endpoints, scoped to an organization.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.database import get_db
from agencyos.core.dependencies import get_current_user, get_org_member
from agencyos.models.invoice import InvoiceStatus
from agencyos.models.member import TeamMember
from agencyos.models.organization import Organization
from agencyos.models.user import User
from agencyos.schemas.invoice import (
    InvoiceCreateRequest,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceSendRequest,
    InvoiceUpdateRequest,
)
from agencyos.services.invoice_service import InvoiceService

router = APIRouter()


def get_invoice_service(db: AsyncSession = Depends(get_db)) -> InvoiceService:
    return InvoiceService(db=db)


@router.post(
    "/organizations/{org_id}/invoices",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an invoice",
)
async def create_invoice(
    data: InvoiceCreateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    """Number, item amounts and totals are assigned by the server."""
    org, _ = org_and_member
    return await service.create_invoice(org, data, current_user)


@router.get(
    "/organizations/{org_id}/invoices",
    response_model=InvoiceListResponse,
    summary="List invoices",
)
async def list_invoices(
    invoice_status: InvoiceStatus | None = Query(default=None, alias="status"),
    client_id: UUID | None = Query(default=None),
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceListResponse:
    org, _ = org_and_member
    return await service.list_invoices(org.id, invoice_status=invoice_status, client_id=client_id)


@router.get(
    "/organizations/{org_id}/invoices/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Get an invoice",
)
async def get_invoice(
    invoice_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    org, _ = org_and_member
    return await service.get_invoice(org.id, invoice_id)


@router.patch(
    "/organizations/{org_id}/invoices/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Update an invoice",
)
async def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    org, _ = org_and_member
    return await service.update_invoice(org.id, invoice_id, data)


@router.delete(
    "/organizations/{org_id}/invoices/{invoice_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an invoice",
)
async def delete_invoice(
    invoice_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: InvoiceService = Depends(get_invoice_service),
) -> None:
    org, member = org_and_member
    await service.delete_invoice(org.id, invoice_id, member)


@router.post(
    "/organizations/{org_id}/invoices/{invoice_id}/mark-paid",
    response_model=InvoiceResponse,
    summary="Mark an invoice as paid",
)
async def mark_as_paid(
    invoice_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    org, _ = org_and_member
    return await service.mark_as_paid(org.id, invoice_id)


@router.post(
    "/organizations/{org_id}/invoices/{invoice_id}/send",
    response_model=InvoiceResponse,
    summary="Email a draft invoice to the client",
)
async def send_invoice(
    invoice_id: UUID,
    data: InvoiceSendRequest | None = None,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    org, _ = org_and_member
    return await service.send_invoice(org, invoice_id, data or InvoiceSendRequest())
