"""
Organization ORM models: the tenant row plus its 1:1 settings and address.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyos.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from agencyos.models.invite import Invite
    from agencyos.models.member import TeamMember


DEFAULT_BRAND_COLOR = "#6366f1"


class TaskView(str, enum.Enum):
    """Default layout for the task screen."""

    list = "list"
    board = "board"
    calendar = "calendar"


class Organization(Base, UUIDMixin, TimestampMixin):
    """Represents a tenant organization."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tax_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    members: Mapped[list[TeamMember]] = relationship(
        "TeamMember", back_populates="organization", passive_deletes=True
    )
    invites: Mapped[list[Invite]] = relationship(
        "Invite", back_populates="organization", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name={self.name!r}>"


class OrganizationSettings(Base, TimestampMixin):
    """Per-organization switches. Exactly one row per organization."""

    __tablename__ = "organization_settings"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True
    )
    allow_client_invites: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    allow_team_invites: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    default_task_view: Mapped[TaskView] = mapped_column(
        Enum(TaskView, name="task_view", native_enum=False),
        nullable=False,
        default=TaskView.board,
    )
    brand_color: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DEFAULT_BRAND_COLOR
    )

    def __repr__(self) -> str:
        return f"<OrganizationSettings organization_id={self.organization_id}>"


class OrganizationAddress(Base, TimestampMixin):
    """Structured postal address. Zero or one row per organization."""

    __tablename__ = "organization_addresses"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True
    )
    street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
