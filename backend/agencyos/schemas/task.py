"""
Task schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from agencyos.models.task import TaskPriority, TaskStatus


class TaskCreateRequest(BaseModel):
    """Request body for POST /organizations/{org_id}/tasks."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus = TaskStatus.todo
    priority: TaskPriority = TaskPriority.medium
    assignee_id: UUID | None = None
    client_id: UUID | None = None
    due_date: date | None = None
    tags: list[str] = Field(default_factory=list)


class TaskUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{org_id}/tasks/{task_id}. Patch semantics."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: UUID | None = None
    client_id: UUID | None = None
    due_date: date | None = None
    tags: list[str] | None = None


class TaskResponse(BaseModel):
    id: UUID
    organization_id: UUID
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    assignee_id: UUID | None
    client_id: UUID | None
    due_date: date | None
    tags: list[str]
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskListResponse(BaseModel):
    data: list[TaskResponse]
    total: int
