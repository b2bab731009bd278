"""
User ORM model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyos.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from agencyos.models.member import TeamMember


class User(Base, UUIDMixin, TimestampMixin):
    """An authenticated person with an email/password login and a profile."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Profile
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    welcomed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    memberships: Mapped[list[TeamMember]] = relationship(
        "TeamMember",
        foreign_keys="TeamMember.user_id",
        back_populates="user",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
