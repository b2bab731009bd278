"""
Chat endpoints, scoped to an organization.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.database import get_db
from agencyos.core.dependencies import get_current_user, get_org_member
from agencyos.models.member import TeamMember
from agencyos.models.organization import Organization
from agencyos.models.user import User
from agencyos.schemas.chat import (
    MessageCreateRequest,
    MessageListResponse,
    MessageResponse,
    RoomCreateRequest,
    RoomListResponse,
    RoomResponse,
    UnreadCountsResponse,
)
from agencyos.services.chat_service import ChatService

router = APIRouter()


def get_chat_service(db: AsyncSession = Depends(get_db)) -> ChatService:
    return ChatService(db=db)


@router.post(
    "/organizations/{org_id}/chat/rooms",
    response_model=RoomResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a chat room",
)
async def create_room(
    data: RoomCreateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> RoomResponse:
    org, _ = org_and_member
    return await service.create_room(org, data, current_user)


@router.get(
    "/organizations/{org_id}/chat/rooms",
    response_model=RoomListResponse,
    summary="List my chat rooms",
)
async def list_rooms(
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> RoomListResponse:
    org, _ = org_and_member
    return await service.list_rooms(org.id, current_user)


@router.get(
    "/organizations/{org_id}/chat/unread",
    response_model=UnreadCountsResponse,
    summary="Unread message counts per room",
)
async def unread_counts(
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> UnreadCountsResponse:
    org, _ = org_and_member
    return await service.unread_counts(org.id, current_user)


@router.get(
    "/organizations/{org_id}/chat/rooms/{room_id}/messages",
    response_model=MessageListResponse,
    summary="List messages in a room",
)
async def list_messages(
    room_id: UUID,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> MessageListResponse:
    """Also marks the returned room as read for the caller."""
    org, _ = org_and_member
    return await service.list_messages(org.id, room_id, current_user, skip=skip, limit=limit)


@router.post(
    "/organizations/{org_id}/chat/rooms/{room_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
async def send_message(
    room_id: UUID,
    data: MessageCreateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> MessageResponse:
    org, _ = org_and_member
    return await service.send_message(org.id, room_id, data, current_user)


@router.post(
    "/organizations/{org_id}/chat/rooms/{room_id}/read",
    summary="Mark all messages in a room as read",
)
async def mark_read(
    room_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> dict:
    org, _ = org_and_member
    return await service.mark_read(org.id, room_id, current_user)
