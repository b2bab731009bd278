"""
Invoice business logic.

Numbers are INV-001, INV-002, ... per organization. Totals are always
computed here from the line items; plain floats, no rounding.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agencyos.models.base import utcnow
from agencyos.models.client import Client
from agencyos.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from agencyos.models.member import TeamMember
from agencyos.models.organization import Organization
from agencyos.models.user import User
from agencyos.schemas.invoice import (
    InvoiceCreateRequest,
    InvoiceItemSchema,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceSendRequest,
    InvoiceUpdateRequest,
)
from agencyos.services.task_service import ensure_can_delete

logger = logging.getLogger(__name__)


def compute_totals(
    items: Iterable[tuple[float, float]], discount: float, tax_rate: float
) -> tuple[float, float, float]:
    """
    Return (subtotal, tax_amount, total) for (quantity, unit_price) pairs.

    Tax applies to the discounted subtotal.
    """
    subtotal = sum(quantity * unit_price for quantity, unit_price in items)
    tax_amount = (subtotal - discount) * tax_rate / 100
    total = subtotal - discount + tax_amount
    return subtotal, tax_amount, total


def format_invoice_number(sequence: int) -> str:
    return f"INV-{sequence:03d}"


def _queue_invoice_email(
    to_email: str,
    org_name: str,
    invoice_number: str,
    total: float,
    currency: str,
    due_date: str,
) -> None:
    """
    Enqueue the invoice email.
    Import is deferred to avoid circular imports at module load.
    """
    from agencyos.workers.email_tasks import send_invoice_email
    send_invoice_email.delay(
        to_email=to_email,
        org_name=org_name,
        invoice_number=invoice_number,
        total=total,
        currency=currency,
        due_date=due_date,
    )


class InvoiceService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Create
    # -----------------------------------------------------------------------

    async def create_invoice(
        self, org: Organization, data: InvoiceCreateRequest, creator: User
    ) -> InvoiceResponse:
        """
        Create an invoice.

        - Client must belong to the organization
        - Number is the next free INV-nnn for the organization
        - Item amounts and totals are computed server-side
        """
        await self._ensure_client(org.id, data.client_id)

        invoice = Invoice(
            organization_id=org.id,
            number=await self._next_number(org.id),
            client_id=data.client_id,
            status=data.status,
            issue_date=data.issue_date,
            due_date=data.due_date,
            notes=data.notes,
            terms=data.terms,
            tax_rate=data.tax_rate,
            discount=data.discount,
            created_by=creator.id,
            items=self._build_items(data.items),
        )
        if invoice.status == InvoiceStatus.paid:
            invoice.paid_at = utcnow()
        self._apply_totals(invoice)

        self.db.add(invoice)
        await self.db.flush()
        logger.info("Invoice %s created for organization %s", invoice.number, org.id)
        return InvoiceResponse.model_validate(invoice)

    # -----------------------------------------------------------------------
    # List / Get
    # -----------------------------------------------------------------------

    async def list_invoices(
        self,
        org_id: UUID,
        invoice_status: InvoiceStatus | None = None,
        client_id: UUID | None = None,
    ) -> InvoiceListResponse:
        stmt = (
            select(Invoice)
            .options(selectinload(Invoice.items))
            .where(Invoice.organization_id == org_id)
        )
        if invoice_status is not None:
            stmt = stmt.where(Invoice.status == invoice_status)
        if client_id is not None:
            stmt = stmt.where(Invoice.client_id == client_id)

        result = await self.db.execute(stmt.order_by(Invoice.created_at.desc()))
        invoices = [InvoiceResponse.model_validate(i) for i in result.scalars().all()]
        return InvoiceListResponse(data=invoices, total=len(invoices))

    async def get_invoice(self, org_id: UUID, invoice_id: UUID) -> InvoiceResponse:
        return InvoiceResponse.model_validate(await self._get_invoice(org_id, invoice_id))

    # -----------------------------------------------------------------------
    # Update / Delete
    # -----------------------------------------------------------------------

    async def update_invoice(
        self, org_id: UUID, invoice_id: UUID, data: InvoiceUpdateRequest
    ) -> InvoiceResponse:
        """Patch an invoice; totals are recomputed from the resulting state."""
        invoice = await self._get_invoice(org_id, invoice_id)
        changes = data.model_dump(exclude_unset=True, exclude={"items"})

        if changes.get("client_id") is not None:
            await self._ensure_client(org_id, changes["client_id"])

        for field, value in changes.items():
            if value is None and field not in ("notes", "terms"):
                continue
            setattr(invoice, field, value)

        if invoice.due_date < invoice.issue_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_DATES", "message": "Due date cannot be before the issue date"},
            )

        if data.items is not None:
            invoice.items = self._build_items(data.items)
        if invoice.status == InvoiceStatus.paid and invoice.paid_at is None:
            invoice.paid_at = utcnow()
        self._apply_totals(invoice)

        await self.db.flush()
        return InvoiceResponse.model_validate(invoice)

    async def delete_invoice(self, org_id: UUID, invoice_id: UUID, member: TeamMember) -> None:
        invoice = await self._get_invoice(org_id, invoice_id)
        ensure_can_delete(invoice.created_by, member)
        await self.db.delete(invoice)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Status transitions
    # -----------------------------------------------------------------------

    async def mark_as_paid(self, org_id: UUID, invoice_id: UUID) -> InvoiceResponse:
        invoice = await self._get_invoice(org_id, invoice_id)
        if invoice.status == InvoiceStatus.cancelled:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "INVOICE_CANCELLED", "message": "A cancelled invoice cannot be paid"},
            )
        invoice.status = InvoiceStatus.paid
        invoice.paid_at = utcnow()
        await self.db.flush()
        return InvoiceResponse.model_validate(invoice)

    async def send_invoice(
        self, org: Organization, invoice_id: UUID, data: InvoiceSendRequest
    ) -> InvoiceResponse:
        """
        Email the invoice and move it from draft to sent.

        - Recipient defaults to the client's email
        - The status change is rolled back if the email cannot be queued
        """
        invoice = await self._get_invoice(org.id, invoice_id)
        if invoice.status != InvoiceStatus.draft:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "INVOICE_NOT_DRAFT", "message": "Only draft invoices can be sent"},
            )

        recipient = data.email
        if recipient is None and invoice.client_id is not None:
            client = await self.db.get(Client, invoice.client_id)
            recipient = client.email if client else None
        if not recipient:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "NO_RECIPIENT", "message": "The client has no email address"},
            )

        invoice.status = InvoiceStatus.sent
        await self.db.flush()

        try:
            _queue_invoice_email(
                to_email=recipient,
                org_name=org.name,
                invoice_number=invoice.number,
                total=invoice.total,
                currency=org.currency or "USD",
                due_date=invoice.due_date.isoformat(),
            )
        except Exception:
            logger.exception("Could not queue email for invoice %s", invoice.id)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={"code": "INVOICE_NOTIFY_FAILED", "message": "The invoice email could not be sent"},
            )

        return InvoiceResponse.model_validate(invoice)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _build_items(items: list[InvoiceItemSchema]) -> list[InvoiceItem]:
        return [
            InvoiceItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=item.quantity * item.unit_price,
                position=position,
            )
            for position, item in enumerate(items)
        ]

    @staticmethod
    def _apply_totals(invoice: Invoice) -> None:
        invoice.subtotal, invoice.tax_amount, invoice.total = compute_totals(
            ((item.quantity, item.unit_price) for item in invoice.items),
            invoice.discount,
            invoice.tax_rate,
        )

    async def _next_number(self, org_id: UUID) -> str:
        # count + 1, skipping numbers freed up by deletions that are still taken
        count = await self.db.scalar(
            select(func.count()).select_from(Invoice).where(Invoice.organization_id == org_id)
        ) or 0
        result = await self.db.execute(
            select(Invoice.number).where(Invoice.organization_id == org_id)
        )
        taken = set(result.scalars().all())

        sequence = count + 1
        while format_invoice_number(sequence) in taken:
            sequence += 1
        return format_invoice_number(sequence)

    async def _get_invoice(self, org_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = await self.db.scalar(
            select(Invoice)
            .options(selectinload(Invoice.items))
            .where(Invoice.id == invoice_id, Invoice.organization_id == org_id)
        )
        if invoice is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "INVOICE_NOT_FOUND", "message": "Invoice not found"},
            )
        return invoice

    async def _ensure_client(self, org_id: UUID, client_id: UUID) -> None:
        client = await self.db.scalar(
            select(Client.id).where(Client.id == client_id, Client.organization_id == org_id)
        )
        if client is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_CLIENT", "message": "Client not found in this organization"},
            )
