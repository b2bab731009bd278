"""
Notification endpoints.

GET    /notifications               - list user notifications (paginated)
PATCH  /notifications/{id}/read     - mark single notification as read
POST   /notifications/mark-all-read - mark all notifications as read
DELETE /notifications/{id}          - delete one
DELETE /notifications               - clear all
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.database import get_db
from agencyos.core.dependencies import get_current_user
from agencyos.models.user import User
from agencyos.schemas.notification import NotificationListResponse, NotificationResponse
from agencyos.services.notification_service import NotificationService

router = APIRouter()


def get_notification_service(
    db: AsyncSession = Depends(get_db),
) -> NotificationService:
    return NotificationService(db=db)


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List notifications for current user",
)
async def list_notifications(
    unread: bool = Query(default=False, description="Filter to unread only"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=25, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    return await service.list_notifications(
        user_id=current_user.id,
        unread_only=unread,
        skip=skip,
        limit=limit,
    )


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a single notification as read",
)
async def mark_notification_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    return await service.mark_read(notification_id=notification_id, user_id=current_user.id)


@router.post(
    "/mark-all-read",
    status_code=status.HTTP_200_OK,
    summary="Mark all notifications as read",
)
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    return await service.mark_all_read(user_id=current_user.id)


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> None:
    await service.delete(notification_id=notification_id, user_id=current_user.id)


@router.delete(
    "",
    status_code=status.HTTP_200_OK,
    summary="Clear all notifications",
)
async def clear_notifications(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    return await service.clear_all(user_id=current_user.id)
