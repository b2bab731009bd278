"""
Business logic for in-app notifications.
Handles creation and read-state management.
All queries scoped by user_id.
"""

from __future__ import annotations

import uuid

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.models.notification import Notification
from agencyos.schemas.notification import (
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
)


class NotificationService:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Create a notification record in the DB
    # Called from invite_service and task_service
    # ------------------------------------------------------------------

    async def create(self, data: NotificationCreate) -> Notification:
        """Insert a notification row inside the caller's transaction."""
        notification = Notification(
            user_id=data.user_id,
            organization_id=data.organization_id,
            type=data.type,
            title=data.title,
            message=data.message,
            link=data.link,
            is_read=False,
        )
        self._db.add(notification)
        await self._db.flush()
        return notification

    # ------------------------------------------------------------------
    # GET /notifications
    # ------------------------------------------------------------------

    async def list_notifications(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 25,
    ) -> NotificationListResponse:
        """List the user's notifications, newest first."""
        base_stmt = select(Notification).where(Notification.user_id == user_id)

        if unread_only:
            base_stmt = base_stmt.where(Notification.is_read.is_(False))

        total = await self._db.scalar(
            select(func.count()).select_from(base_stmt.subquery())
        ) or 0

        # Unread count is reported regardless of the filter
        unread_count = await self._db.scalar(
            select(func.count()).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        ) or 0

        result = await self._db.execute(
            base_stmt
            .order_by(Notification.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        notifications = result.scalars().all()

        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in notifications],
            total=total,
            unread_count=unread_count,
        )

    # ------------------------------------------------------------------
    # PATCH /notifications/{id}/read
    # ------------------------------------------------------------------

    async def mark_read(
        self,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> NotificationResponse:
        notification = await self._get_owned(notification_id, user_id)
        notification.is_read = True
        await self._db.flush()
        return NotificationResponse.model_validate(notification)

    # ------------------------------------------------------------------
    # POST /notifications/mark-all-read
    # ------------------------------------------------------------------

    async def mark_all_read(self, user_id: uuid.UUID) -> dict[str, int]:
        """Mark every unread notification as read. Returns the number updated."""
        result = await self._db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        return {"updated": result.rowcount}

    # ------------------------------------------------------------------
    # DELETE /notifications/{id}, DELETE /notifications
    # ------------------------------------------------------------------

    async def delete(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> None:
        notification = await self._get_owned(notification_id, user_id)
        await self._db.delete(notification)
        await self._db.flush()

    async def clear_all(self, user_id: uuid.UUID) -> dict[str, int]:
        result = await self._db.execute(
            delete(Notification).where(Notification.user_id == user_id)
        )
        return {"deleted": result.rowcount}

    async def _get_owned(
        self, notification_id: uuid.UUID, user_id: uuid.UUID
    ) -> Notification:
        # Scoped to user_id so one user can never touch another's rows
        notification = await self._db.scalar(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        if notification is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={
                    "code": "NOTIFICATION_NOT_FOUND",
                    "message": "Notification not found.",
                },
            )
        return notification
