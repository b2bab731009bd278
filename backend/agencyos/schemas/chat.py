"""
Chat schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from agencyos.models.chat import ParticipantRole, RoomType


class RoomCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: RoomType = RoomType.group
    participant_ids: list[UUID] = Field(default_factory=list)


class ParticipantResponse(BaseModel):
    user_id: UUID
    role: ParticipantRole
    joined_at: datetime

    model_config = {"from_attributes": True}


class MessageCreateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=10000)


class MessageResponse(BaseModel):
    id: UUID
    room_id: UUID
    sender_id: UUID | None
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class RoomResponse(BaseModel):
    id: UUID
    organization_id: UUID
    name: str
    type: RoomType
    created_by: UUID | None
    created_at: datetime
    participants: list[ParticipantResponse] = Field(default_factory=list)
    last_message: MessageResponse | None = None
    unread_count: int = 0


class RoomListResponse(BaseModel):
    rooms: list[RoomResponse]
    total: int


class MessageListResponse(BaseModel):
    messages: list[MessageResponse]
    total: int


class UnreadCountsResponse(BaseModel):
    rooms: dict[str, int]
    total: int
