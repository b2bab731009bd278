"""
Pydantic schemas for notifications.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from agencyos.models.notification import NotificationType


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------

class NotificationResponse(BaseModel):
    """Single notification response."""
    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: uuid.UUID | None
    type: NotificationType
    title: str
    message: str
    link: str | None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    """Response for GET /notifications."""
    data: list[NotificationResponse]
    total: int
    unread_count: int


# ---------------------------------------------------------------------------
# Internal schema used by other services to create notifications
# ---------------------------------------------------------------------------

class NotificationCreate(BaseModel):
    """Internal schema for creating a notification (not exposed via API)."""
    user_id: uuid.UUID
    organization_id: uuid.UUID | None = None
    type: NotificationType = NotificationType.info
    title: str
    message: str
    link: str | None = None
