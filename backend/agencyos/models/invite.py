"""
Invite ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyos.models.base import Base, TimestampMixin, UUIDMixin, as_utc, utcnow

if TYPE_CHECKING:
    from agencyos.models.organization import Organization


class InviteRole(str, enum.Enum):
    admin = "admin"
    member = "member"
    client = "client"


class InviteStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    revoked = "revoked"
    declined = "declined"


class Invite(Base, UUIDMixin, TimestampMixin):
    """Tokened, time-limited offer for an email address to join an organization."""

    __tablename__ = "invites"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[InviteRole] = mapped_column(
        Enum(InviteRole, name="invite_role", native_enum=False), nullable=False
    )
    status: Mapped[InviteStatus] = mapped_column(
        Enum(InviteStatus, name="invite_status", native_enum=False),
        nullable=False,
        default=InviteStatus.pending,
    )
    token: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    invited_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    invited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Relationships
    organization: Mapped[Organization] = relationship(
        "Organization", back_populates="invites"
    )

    @property
    def is_expired(self) -> bool:
        """Expiry is derived at read time; the stored status never changes for it."""
        return utcnow() > as_utc(self.expires_at)

    def __repr__(self) -> str:
        return f"<Invite id={self.id} email={self.email!r} status={self.status}>"
