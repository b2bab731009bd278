"""
Chat business logic.

Rooms belong to an organization; only participants can read or post.
A message is unread for a user until a read receipt exists for it, and a
user's own messages never count as unread.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import and_, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.models.base import utcnow
from agencyos.models.chat import (
    ChatMessage,
    ChatMessageRead,
    ChatParticipant,
    ChatRoom,
    ParticipantRole,
    RoomType,
)
from agencyos.models.member import MemberStatus, TeamMember
from agencyos.models.organization import Organization
from agencyos.models.user import User
from agencyos.schemas.chat import (
    MessageCreateRequest,
    MessageListResponse,
    MessageResponse,
    ParticipantResponse,
    RoomCreateRequest,
    RoomListResponse,
    RoomResponse,
    UnreadCountsResponse,
)

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Rooms
    # -----------------------------------------------------------------------

    async def create_room(
        self, org: Organization, data: RoomCreateRequest, creator: User
    ) -> RoomResponse:
        """
        Create a room.

        - Creator joins as admin, everyone else as member
        - Participants must be active members of the organization
        - Direct rooms have exactly one other participant
        """
        others = [uid for uid in dict.fromkeys(data.participant_ids) if uid != creator.id]

        if data.type == RoomType.direct and len(others) != 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "code": "INVALID_PARTICIPANTS",
                    "message": "A direct room needs exactly one other participant",
                },
            )

        if others:
            result = await self.db.execute(
                select(TeamMember.user_id).where(
                    TeamMember.organization_id == org.id,
                    TeamMember.user_id.in_(others),
                    TeamMember.status == MemberStatus.active,
                )
            )
            if len(set(result.scalars().all())) != len(others):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail={
                        "code": "INVALID_PARTICIPANTS",
                        "message": "All participants must be active members of the organization",
                    },
                )

        room = ChatRoom(
            organization_id=org.id,
            name=data.name,
            type=data.type,
            created_by=creator.id,
        )
        self.db.add(room)
        await self.db.flush()

        participants = [
            ChatParticipant(room_id=room.id, user_id=creator.id, role=ParticipantRole.admin)
        ] + [
            ChatParticipant(room_id=room.id, user_id=uid, role=ParticipantRole.member)
            for uid in others
        ]
        self.db.add_all(participants)
        await self.db.flush()
        logger.info("Chat room %s (%s) created in organization %s", room.id, room.type.value, org.id)

        return self._room_response(room, participants, None, 0)

    async def list_rooms(self, org_id: UUID, user: User) -> RoomListResponse:
        """Rooms the user participates in, with last message and unread count."""
        result = await self.db.execute(
            select(ChatRoom)
            .join(ChatParticipant, ChatParticipant.room_id == ChatRoom.id)
            .where(
                ChatRoom.organization_id == org_id,
                ChatParticipant.user_id == user.id,
            )
            .order_by(ChatRoom.updated_at.desc())
        )
        rooms = result.scalars().all()

        unread = await self._unread_by_room(org_id, user.id)
        responses = []
        for room in rooms:
            participants = await self._participants(room.id)
            last_message = await self.db.scalar(
                select(ChatMessage)
                .where(ChatMessage.room_id == room.id)
                .order_by(ChatMessage.created_at.desc())
                .limit(1)
            )
            responses.append(
                self._room_response(room, participants, last_message, unread.get(room.id, 0))
            )
        return RoomListResponse(rooms=responses, total=len(responses))

    # -----------------------------------------------------------------------
    # Messages
    # -----------------------------------------------------------------------

    async def send_message(
        self, org_id: UUID, room_id: UUID, data: MessageCreateRequest, sender: User
    ) -> MessageResponse:
        room = await self._get_room_as_participant(org_id, room_id, sender.id)

        message = ChatMessage(room_id=room.id, sender_id=sender.id, content=data.content)
        self.db.add(message)
        await self.db.flush()

        self.db.add(ChatMessageRead(message_id=message.id, user_id=sender.id))
        room.updated_at = utcnow()
        await self.db.flush()
        return MessageResponse.model_validate(message)

    async def list_messages(
        self,
        org_id: UUID,
        room_id: UUID,
        user: User,
        skip: int = 0,
        limit: int = 50,
    ) -> MessageListResponse:
        """Messages oldest first. Fetching them marks the room read."""
        room = await self._get_room_as_participant(org_id, room_id, user.id)

        total = await self.db.scalar(
            select(func.count()).select_from(ChatMessage).where(ChatMessage.room_id == room.id)
        ) or 0
        result = await self.db.execute(
            select(ChatMessage)
            .where(ChatMessage.room_id == room.id)
            .order_by(ChatMessage.created_at)
            .offset(skip)
            .limit(limit)
        )
        messages = [MessageResponse.model_validate(m) for m in result.scalars().all()]

        await self._mark_room_read(room.id, user.id)
        return MessageListResponse(messages=messages, total=total)

    async def mark_read(self, org_id: UUID, room_id: UUID, user: User) -> dict[str, int]:
        room = await self._get_room_as_participant(org_id, room_id, user.id)
        return {"marked": await self._mark_room_read(room.id, user.id)}

    async def unread_counts(self, org_id: UUID, user: User) -> UnreadCountsResponse:
        by_room = await self._unread_by_room(org_id, user.id)
        return UnreadCountsResponse(
            rooms={str(room_id): count for room_id, count in by_room.items()},
            total=sum(by_room.values()),
        )

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _unread_condition(self, user_id: UUID):
        already_read = exists().where(
            ChatMessageRead.message_id == ChatMessage.id,
            ChatMessageRead.user_id == user_id,
        )
        return and_(
            (ChatMessage.sender_id != user_id) | ChatMessage.sender_id.is_(None),
            ~already_read,
        )

    async def _unread_by_room(self, org_id: UUID, user_id: UUID) -> dict[UUID, int]:
        result = await self.db.execute(
            select(ChatMessage.room_id, func.count(ChatMessage.id))
            .join(ChatRoom, ChatRoom.id == ChatMessage.room_id)
            .join(
                ChatParticipant,
                and_(
                    ChatParticipant.room_id == ChatRoom.id,
                    ChatParticipant.user_id == user_id,
                ),
            )
            .where(ChatRoom.organization_id == org_id, self._unread_condition(user_id))
            .group_by(ChatMessage.room_id)
        )
        return {room_id: count for room_id, count in result.all()}

    async def _mark_room_read(self, room_id: UUID, user_id: UUID) -> int:
        result = await self.db.execute(
            select(ChatMessage.id).where(
                ChatMessage.room_id == room_id,
                self._unread_condition(user_id),
            )
        )
        unread_ids = result.scalars().all()
        self.db.add_all(
            ChatMessageRead(message_id=message_id, user_id=user_id)
            for message_id in unread_ids
        )
        await self.db.flush()
        return len(unread_ids)

    async def _participants(self, room_id: UUID) -> list[ChatParticipant]:
        result = await self.db.execute(
            select(ChatParticipant)
            .where(ChatParticipant.room_id == room_id)
            .order_by(ChatParticipant.joined_at)
        )
        return list(result.scalars().all())

    async def _get_room_as_participant(
        self, org_id: UUID, room_id: UUID, user_id: UUID
    ) -> ChatRoom:
        room = await self.db.scalar(
            select(ChatRoom).where(ChatRoom.id == room_id, ChatRoom.organization_id == org_id)
        )
        if room is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "ROOM_NOT_FOUND", "message": "Chat room not found"},
            )
        participant = await self.db.get(ChatParticipant, (room.id, user_id))
        if participant is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "NOT_A_PARTICIPANT", "message": "You are not in this chat room"},
            )
        return room

    @staticmethod
    def _room_response(
        room: ChatRoom,
        participants: list[ChatParticipant],
        last_message: ChatMessage | None,
        unread_count: int,
    ) -> RoomResponse:
        return RoomResponse(
            id=room.id,
            organization_id=room.organization_id,
            name=room.name,
            type=room.type,
            created_by=room.created_by,
            created_at=room.created_at,
            participants=[ParticipantResponse.model_validate(p) for p in participants],
            last_message=MessageResponse.model_validate(last_message) if last_message else None,
            unread_count=unread_count,
        )
