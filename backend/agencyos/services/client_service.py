"""
Client business logic. All queries scoped by organization_id.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.models.client import Client, ClientStatus
from agencyos.models.member import TeamMember
from agencyos.models.organization import Organization
from agencyos.models.user import User
from agencyos.schemas.client import (
    ClientCreateRequest,
    ClientListResponse,
    ClientResponse,
    ClientUpdateRequest,
)
from agencyos.services.task_service import ensure_can_delete

logger = logging.getLogger(__name__)


class ClientService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_client(
        self, org: Organization, data: ClientCreateRequest, creator: User
    ) -> ClientResponse:
        client = Client(
            organization_id=org.id,
            created_by=creator.id,
            **data.model_dump(),
        )
        if client.email:
            client.email = client.email.lower()
        self.db.add(client)
        await self.db.flush()
        return ClientResponse.model_validate(client)

    async def list_clients(
        self,
        org_id: UUID,
        client_status: ClientStatus | None = None,
        search: str | None = None,
    ) -> ClientListResponse:
        stmt = select(Client).where(Client.organization_id == org_id)
        if client_status is not None:
            stmt = stmt.where(Client.status == client_status)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    Client.name.ilike(pattern),
                    Client.email.ilike(pattern),
                    Client.contact_person.ilike(pattern),
                )
            )

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        result = await self.db.execute(stmt.order_by(Client.name))
        clients = [ClientResponse.model_validate(c) for c in result.scalars().all()]
        return ClientListResponse(data=clients, total=total)

    async def get_client(self, org_id: UUID, client_id: UUID) -> ClientResponse:
        return ClientResponse.model_validate(await self._get_client(org_id, client_id))

    async def update_client(
        self, org_id: UUID, client_id: UUID, data: ClientUpdateRequest
    ) -> ClientResponse:
        client = await self._get_client(org_id, client_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field in ("name", "status") and value is None:
                continue
            if field == "email" and value is not None:
                value = value.lower()
            setattr(client, field, value)
        await self.db.flush()
        return ClientResponse.model_validate(client)

    async def delete_client(self, org_id: UUID, client_id: UUID, member: TeamMember) -> None:
        """Hard delete. Tasks and invoices keep their rows with client_id cleared."""
        client = await self._get_client(org_id, client_id)
        ensure_can_delete(client.created_by, member)
        await self.db.delete(client)
        await self.db.flush()
        logger.info("Client %s deleted from organization %s by user %s", client_id, org_id, member.user_id)

    async def _get_client(self, org_id: UUID, client_id: UUID) -> Client:
        client = await self.db.scalar(
            select(Client).where(Client.id == client_id, Client.organization_id == org_id)
        )
        if client is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "CLIENT_NOT_FOUND", "message": "Client not found"},
            )
        return client
