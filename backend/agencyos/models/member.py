"""
TeamMember ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyos.models.base import Base, UUIDMixin, utcnow

if TYPE_CHECKING:
    from agencyos.models.organization import Organization
    from agencyos.models.user import User


class MemberRole(str, enum.Enum):
    """Organization member role enumeration."""

    owner = "owner"
    admin = "admin"
    member = "member"


class MemberStatus(str, enum.Enum):
    invited = "invited"
    active = "active"
    inactive = "inactive"


class TeamMember(Base, UUIDMixin):
    """A user's membership in one organization, with a role."""

    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_team_members_org_user"),
    )

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[MemberRole] = mapped_column(
        Enum(MemberRole, name="member_role", native_enum=False), nullable=False
    )
    status: Mapped[MemberStatus] = mapped_column(
        Enum(MemberStatus, name="member_status", native_enum=False),
        nullable=False,
        default=MemberStatus.active,
    )
    invited_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    invited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    organization: Mapped[Organization] = relationship(
        "Organization", back_populates="members"
    )
    user: Mapped[User] = relationship(
        "User", foreign_keys=[user_id], back_populates="memberships"
    )

    def __repr__(self) -> str:
        return (
            f"<TeamMember organization_id={self.organization_id} "
            f"user_id={self.user_id} role={self.role}>"
        )
