"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
Import order matters: base models before dependent models.
"""

from agencyos.models.base import Base, TimestampMixin, UUIDMixin
from agencyos.models.user import User
from agencyos.models.organization import (
    Organization,
    OrganizationAddress,
    OrganizationSettings,
    TaskView,
)
from agencyos.models.member import MemberRole, MemberStatus, TeamMember
from agencyos.models.invite import Invite, InviteRole, InviteStatus
from agencyos.models.client import Client, ClientStatus
from agencyos.models.task import Task, TaskPriority, TaskStatus
from agencyos.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from agencyos.models.chat import (
    ChatMessage,
    ChatMessageRead,
    ChatParticipant,
    ChatRoom,
    ParticipantRole,
    RoomType,
)
from agencyos.models.notification import Notification, NotificationType

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "User",
    "Organization",
    "OrganizationAddress",
    "OrganizationSettings",
    "TaskView",
    "TeamMember",
    "MemberRole",
    "MemberStatus",
    "Invite",
    "InviteRole",
    "InviteStatus",
    "Client",
    "ClientStatus",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "ChatRoom",
    "ChatParticipant",
    "ChatMessage",
    "ChatMessageRead",
    "ParticipantRole",
    "RoomType",
    "Notification",
    "NotificationType",
]
