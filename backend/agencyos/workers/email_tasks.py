"""
Email background tasks.

Invitation, email verification, password reset and invoice emails, sent
through Resend. Message bodies are built by plain functions so they can be
checked without a broker.

The invitation task only receives the invite id and reads the invite,
organization and inviter when it runs, so a resend or revoke that lands
before delivery is honoured.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agencyos.core.config import settings
from agencyos.workers.celery_app import celery_app

logger = logging.getLogger(__name__)

_BUTTON_STYLE = (
    "background:#6366f1;color:#fff;padding:12px 24px;"
    "border-radius:6px;text-decoration:none;display:inline-block;"
)


def invite_accept_url(frontend_url: str, invite_token: str) -> str:
    return f"{frontend_url.rstrip('/')}/invite/{invite_token}"


def build_invite_email(
    to_email: str,
    org_name: str,
    inviter_name: str,
    role: str,
    accept_url: str,
    expire_days: int = 7,
) -> dict:
    """Resend params for an invitation email."""
    return {
        "from": settings.EMAIL_FROM,
        "to": [to_email],
        "subject": f"Join {org_name} on AgencyOS",
        "html": f"""
            <h2>You've been invited to AgencyOS</h2>
            <p><strong>{inviter_name}</strong> has invited you to join
            <strong>{org_name}</strong> as a <strong>{role}</strong>.</p>
            <p><a href="{accept_url}" style="{_BUTTON_STYLE}">Accept Invitation</a></p>
            <p>This invitation expires in {expire_days} days.</p>
            <p>If you did not expect this invitation, you can safely ignore this email.</p>
        """,
    }


def build_verification_email(to_email: str, verify_token: str, frontend_url: str) -> dict:
    """Resend params for the address verification email."""
    verify_url = f"{frontend_url.rstrip('/')}/auth/verify?token={verify_token}"
    return {
        "from": settings.EMAIL_FROM,
        "to": [to_email],
        "subject": "Verify your AgencyOS email address",
        "html": f"""
            <h2>Confirm your email</h2>
            <p>Click below to verify the address for your AgencyOS account.</p>
            <p><a href="{verify_url}" style="{_BUTTON_STYLE}">Verify Email</a></p>
            <p>This link expires in 24 hours.</p>
        """,
    }


def build_invoice_email(
    to_email: str,
    org_name: str,
    invoice_number: str,
    total: float,
    currency: str,
    due_date: str,
) -> dict:
    """Resend params for an invoice notification."""
    return {
        "from": settings.EMAIL_FROM,
        "to": [to_email],
        "subject": f"Invoice {invoice_number} from {org_name}",
        "html": f"""
            <h2>Invoice {invoice_number}</h2>
            <p><strong>{org_name}</strong> has sent you an invoice for
            <strong>{total:,.2f} {currency}</strong>.</p>
            <p>Payment is due by <strong>{due_date}</strong>.</p>
        """,
    }


def _run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run a coroutine from a Celery worker on a fresh event loop."""
    # Forked workers inherit pooled connections bound to the parent's loop
    from agencyos.core.database import engine
    engine.sync_engine.dispose()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def load_invite_email(
    invite_id: str,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> dict | None:
    """
    Build the invitation email from the invite as it is stored now.

    Returns None when the invite no longer exists, is not pending or has
    expired, i.e. when there is nothing worth mailing.
    """
    from agencyos.models.invite import Invite, InviteStatus
    from agencyos.models.organization import Organization
    from agencyos.models.user import User

    if session_factory is None:
        from agencyos.core.database import AsyncSessionLocal
        session_factory = AsyncSessionLocal

    async with session_factory() as session:
        invite = await session.get(Invite, UUID(invite_id))
        if invite is None or invite.status != InviteStatus.pending or invite.is_expired:
            return None

        org = await session.get(Organization, invite.organization_id)
        if org is None:
            return None

        inviter = await session.get(User, invite.invited_by) if invite.invited_by else None
        return build_invite_email(
            to_email=invite.email,
            org_name=org.name,
            inviter_name=inviter.name if inviter is not None else org.name,
            role=invite.role.value,
            accept_url=invite_accept_url(settings.FRONTEND_URL, invite.token),
            expire_days=settings.INVITE_EXPIRE_DAYS,
        )


@celery_app.task(name="agencyos.workers.email_tasks.send_invite_email", bind=True, max_retries=3)
def send_invite_email(self, invite_id: str) -> dict[str, str]:  # type: ignore[no-untyped-def]
    """
    Send an invitation email via Resend.

    Args:
        invite_id: Id of the invite row. Token, organization and inviter
            are read from the database when the task runs.

    Returns:
        Dict with status and, once sent, message_id.
    """
    try:
        params = _run_async(load_invite_email(invite_id))
        if params is None:
            logger.info("Invite %s is no longer pending, skipping email", invite_id)
            return {"status": "skipped"}

        import resend

        resend.api_key = settings.RESEND_API_KEY

        response = resend.Emails.send(params)
        return {"status": "sent", "message_id": response["id"]}

    except Exception as exc:
        logger.warning("Invite email for %s failed (attempt %s): %s", invite_id, self.request.retries + 1, exc)
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))


@celery_app.task(name="agencyos.workers.email_tasks.send_verification_email", bind=True, max_retries=3)
def send_verification_email(
    self,  # type: ignore[no-untyped-def]
    to_email: str,
    verify_token: str,
    frontend_url: str,
) -> dict[str, str]:
    """Send the address verification link via Resend."""
    try:
        import resend

        resend.api_key = settings.RESEND_API_KEY

        response = resend.Emails.send(build_verification_email(to_email, verify_token, frontend_url))
        return {"status": "sent", "message_id": response["id"]}

    except Exception as exc:
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))


@celery_app.task(name="agencyos.workers.email_tasks.send_password_reset_email", bind=True, max_retries=3)
def send_password_reset_email(
    self,  # type: ignore[no-untyped-def]
    to_email: str,
    reset_token: str,
    frontend_url: str,
) -> dict[str, str]:
    """Send a password reset email via Resend."""
    try:
        import resend

        resend.api_key = settings.RESEND_API_KEY

        reset_url = f"{frontend_url}/reset-password?token={reset_token}"

        params: resend.Emails.SendParams = {
            "from": settings.EMAIL_FROM,
            "to": [to_email],
            "subject": "Reset your AgencyOS password",
            "html": f"""
                <h2>Reset your password</h2>
                <p>We received a request to reset your AgencyOS password.</p>
                <p><a href="{reset_url}" style="{_BUTTON_STYLE}">Reset Password</a></p>
                <p>This link expires in 1 hour.</p>
                <p>If you did not request a password reset, you can safely ignore this email.</p>
            """,
        }

        response = resend.Emails.send(params)
        return {"status": "sent", "message_id": response["id"]}

    except Exception as exc:
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))


@celery_app.task(name="agencyos.workers.email_tasks.send_invoice_email", bind=True, max_retries=3)
def send_invoice_email(
    self,  # type: ignore[no-untyped-def]
    to_email: str,
    org_name: str,
    invoice_number: str,
    total: float,
    currency: str,
    due_date: str,
) -> dict[str, str]:
    """Send an invoice notification via Resend."""
    try:
        import resend

        resend.api_key = settings.RESEND_API_KEY

        response = resend.Emails.send(
            build_invoice_email(
                to_email=to_email,
                org_name=org_name,
                invoice_number=invoice_number,
                total=total,
                currency=currency,
                due_date=due_date,
            )
        )
        return {"status": "sent", "message_id": response["id"]}

    except Exception as exc:
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))
