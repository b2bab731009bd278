"""
Task business logic.

CRUD with predicate filters. All queries scoped by organization_id.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.models.client import Client
from agencyos.models.member import MemberRole, MemberStatus, TeamMember
from agencyos.models.notification import NotificationType
from agencyos.models.organization import Organization
from agencyos.models.task import Task, TaskPriority, TaskStatus
from agencyos.models.user import User
from agencyos.schemas.notification import NotificationCreate
from agencyos.schemas.task import (
    TaskCreateRequest,
    TaskListResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from agencyos.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def ensure_can_delete(created_by: UUID | None, member: TeamMember) -> None:
    """Deletion is open to the creator and to admins/owners."""
    if member.role in (MemberRole.owner, MemberRole.admin):
        return
    if created_by is not None and created_by == member.user_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "code": "INSUFFICIENT_ROLE",
            "message": "Only the creator or an admin can delete this",
        },
    )


class TaskService:
    """Handles all task operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Create
    # -----------------------------------------------------------------------

    async def create_task(
        self, org: Organization, data: TaskCreateRequest, creator: User
    ) -> TaskResponse:
        """
        Create a task.

        - Assignee must be an active member of the organization
        - Client must belong to the organization
        - Assigning someone else notifies them
        """
        if data.assignee_id is not None:
            await self._ensure_active_member(org.id, data.assignee_id)
        if data.client_id is not None:
            await self._ensure_client(org.id, data.client_id)

        task = Task(
            organization_id=org.id,
            title=data.title,
            description=data.description,
            status=data.status,
            priority=data.priority,
            assignee_id=data.assignee_id,
            client_id=data.client_id,
            due_date=data.due_date,
            tags=list(data.tags),
            created_by=creator.id,
        )
        self.db.add(task)
        await self.db.flush()

        if task.assignee_id is not None and task.assignee_id != creator.id:
            await self._notify_assignee(task, creator)

        return TaskResponse.model_validate(task)

    # -----------------------------------------------------------------------
    # List / Get
    # -----------------------------------------------------------------------

    async def list_tasks(
        self,
        org_id: UUID,
        task_status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        assignee_id: UUID | None = None,
        client_id: UUID | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> TaskListResponse:
        stmt = select(Task).where(Task.organization_id == org_id)

        if task_status is not None:
            stmt = stmt.where(Task.status == task_status)
        if priority is not None:
            stmt = stmt.where(Task.priority == priority)
        if assignee_id is not None:
            stmt = stmt.where(Task.assignee_id == assignee_id)
        if client_id is not None:
            stmt = stmt.where(Task.client_id == client_id)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(Task.title.ilike(pattern), Task.description.ilike(pattern))
            )

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        result = await self.db.execute(
            stmt.order_by(Task.created_at.desc()).offset(skip).limit(limit)
        )
        tasks = [TaskResponse.model_validate(t) for t in result.scalars().all()]
        return TaskListResponse(data=tasks, total=total)

    async def get_task(self, org_id: UUID, task_id: UUID) -> TaskResponse:
        return TaskResponse.model_validate(await self._get_task(org_id, task_id))

    # -----------------------------------------------------------------------
    # Update
    # -----------------------------------------------------------------------

    async def update_task(
        self, org_id: UUID, task_id: UUID, data: TaskUpdateRequest, actor: User
    ) -> TaskResponse:
        """Patch a task. Re-validates assignee/client when they change."""
        task = await self._get_task(org_id, task_id)
        changes = data.model_dump(exclude_unset=True)

        for required in ("title", "status", "priority", "tags"):
            if required in changes and changes[required] is None:
                changes.pop(required)

        new_assignee = changes.get("assignee_id")
        if new_assignee is not None and new_assignee != task.assignee_id:
            await self._ensure_active_member(org_id, new_assignee)
        else:
            new_assignee = None
        if changes.get("client_id") is not None:
            await self._ensure_client(org_id, changes["client_id"])

        for field, value in changes.items():
            setattr(task, field, value)
        await self.db.flush()

        if new_assignee is not None and new_assignee != actor.id:
            await self._notify_assignee(task, actor)

        return TaskResponse.model_validate(task)

    # -----------------------------------------------------------------------
    # Delete
    # -----------------------------------------------------------------------

    async def delete_task(self, org_id: UUID, task_id: UUID, member: TeamMember) -> None:
        task = await self._get_task(org_id, task_id)
        ensure_can_delete(task.created_by, member)
        await self.db.delete(task)
        await self.db.flush()
        logger.info("Task %s deleted from organization %s by user %s", task_id, org_id, member.user_id)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _get_task(self, org_id: UUID, task_id: UUID) -> Task:
        task = await self.db.scalar(
            select(Task).where(Task.id == task_id, Task.organization_id == org_id)
        )
        if task is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "TASK_NOT_FOUND", "message": "Task not found"},
            )
        return task

    async def _ensure_active_member(self, org_id: UUID, user_id: UUID) -> None:
        member = await self.db.scalar(
            select(TeamMember.id).where(
                TeamMember.organization_id == org_id,
                TeamMember.user_id == user_id,
                TeamMember.status == MemberStatus.active,
            )
        )
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_ASSIGNEE", "message": "Assignee must be an active member"},
            )

    async def _ensure_client(self, org_id: UUID, client_id: UUID) -> None:
        client = await self.db.scalar(
            select(Client.id).where(Client.id == client_id, Client.organization_id == org_id)
        )
        if client is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_CLIENT", "message": "Client not found in this organization"},
            )

    async def _notify_assignee(self, task: Task, actor: User) -> None:
        await NotificationService(self.db).create(
            NotificationCreate(
                user_id=task.assignee_id,
                organization_id=task.organization_id,
                type=NotificationType.info,
                title="New task assigned",
                message=f"{actor.name} assigned you \"{task.title}\"",
                link=f"/tasks/{task.id}",
            )
        )
