"""
Client endpoints, scoped to an organization.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agencyos.core.database import get_db
from agencyos.core.dependencies import get_current_user, get_org_member
from agencyos.models.client import ClientStatus
from agencyos.models.member import TeamMember
from agencyos.models.organization import Organization
from agencyos.models.user import User
from agencyos.schemas.client import (
    ClientCreateRequest,
    ClientListResponse,
    ClientResponse,
    ClientUpdateRequest,
)
from agencyos.services.client_service import ClientService

router = APIRouter()


def get_client_service(db: AsyncSession = Depends(get_db)) -> ClientService:
    return ClientService(db=db)


@router.post(
    "/organizations/{org_id}/clients",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a client",
)
async def create_client(
    data: ClientCreateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
) -> ClientResponse:
    org, _ = org_and_member
    return await service.create_client(org, data, current_user)


@router.get(
    "/organizations/{org_id}/clients",
    response_model=ClientListResponse,
    summary="List clients",
)
async def list_clients(
    client_status: ClientStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=200),
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: ClientService = Depends(get_client_service),
) -> ClientListResponse:
    org, _ = org_and_member
    return await service.list_clients(org.id, client_status=client_status, search=search)


@router.get(
    "/organizations/{org_id}/clients/{client_id}",
    response_model=ClientResponse,
    summary="Get a client",
)
async def get_client(
    client_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: ClientService = Depends(get_client_service),
) -> ClientResponse:
    org, _ = org_and_member
    return await service.get_client(org.id, client_id)


@router.patch(
    "/organizations/{org_id}/clients/{client_id}",
    response_model=ClientResponse,
    summary="Update a client",
)
async def update_client(
    client_id: UUID,
    data: ClientUpdateRequest,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: ClientService = Depends(get_client_service),
) -> ClientResponse:
    org, _ = org_and_member
    return await service.update_client(org.id, client_id, data)


@router.delete(
    "/organizations/{org_id}/clients/{client_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a client",
)
async def delete_client(
    client_id: UUID,
    org_and_member: tuple[Organization, TeamMember] = Depends(get_org_member),
    service: ClientService = Depends(get_client_service),
) -> None:
    org, member = org_and_member
    await service.delete_client(org.id, client_id, member)
