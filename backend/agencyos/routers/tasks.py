"""
Task endpoints, scoped to an organization.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.database import get_db
from agencyos.core.dependencies import get_current_user, get_org_member
from agencyos.models.member import TeamMember
from agencyos.models.organization import Organization
from agencyos.models.task import TaskPriority, TaskStatus
from agencyos.models.user import User
from agencyos.schemas.task import (
    TaskCreateRequest,
    TaskListResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from agencyos.services.task_service import TaskService

router = APIRouter()


def get_task_service(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db=db)


@router.post(
    "/organizations/{org_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
async def create_task(
    data: TaskCreateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    org, _ = org_and_member
    return await service.create_task(org, data, current_user)


@router.get(
    "/organizations/{org_id}/tasks",
    response_model=TaskListResponse,
    summary="List tasks",
)
async def list_tasks(
    task_status: TaskStatus | None = Query(default=None, alias="status"),
    priority: TaskPriority | None = Query(default=None),
    assignee_id: UUID | None = Query(default=None),
    client_id: UUID | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    org, _ = org_and_member
    return await service.list_tasks(
        org.id,
        task_status=task_status,
        priority=priority,
        assignee_id=assignee_id,
        client_id=client_id,
        search=search,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/organizations/{org_id}/tasks/{task_id}",
    response_model=TaskResponse,
    summary="Get a task",
)
async def get_task(
    task_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    org, _ = org_and_member
    return await service.get_task(org.id, task_id)


@router.patch(
    "/organizations/{org_id}/tasks/{task_id}",
    response_model=TaskResponse,
    summary="Update a task",
)
async def update_task(
    task_id: UUID,
    data: TaskUpdateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    org, _ = org_and_member
    return await service.update_task(org.id, task_id, data, current_user)


@router.delete(
    "/organizations/{org_id}/tasks/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
)
async def delete_task(
    task_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: TaskService = Depends(get_task_service),
) -> None:
    """Creator or Owner/Admin only."""
    org, member = org_and_member
    await service.delete_task(org.id, task_id, member)
