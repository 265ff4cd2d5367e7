"""
Networking connection endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.database import get_db
from expolink.core.dependencies import get_current_user
from expolink.models.connection import ConnectionStatus
from expolink.models.user import User
from expolink.schemas.connection import (
    ConnectionCreate,
    ConnectionListResponse,
    ConnectionRespond,
    ConnectionResponse,
)
from expolink.services.connection_service import ConnectionService

router = APIRouter()


def get_connection_service(db: AsyncSession = Depends(get_db)) -> ConnectionService:
    return ConnectionService(db=db)


@router.post(
    "",
    response_model=ConnectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a connection request",
)
async def request_connection(
    data: ConnectionCreate,
    current_user: User = Depends(get_current_user),
    service: ConnectionService = Depends(get_connection_service),
) -> ConnectionResponse:
    return await service.request(current_user, data.target_id)


@router.get(
    "",
    response_model=ConnectionListResponse,
    summary="List my connections and requests",
)
async def list_connections(
    status_filter: ConnectionStatus | None = Query(default=None, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: ConnectionService = Depends(get_connection_service),
) -> ConnectionListResponse:
    return await service.list_for_user(
        user_id=current_user.id,
        status_filter=status_filter,
        skip=skip,
        limit=limit,
    )


@router.patch(
    "/{connection_id}",
    response_model=ConnectionResponse,
    summary="Accept or decline a connection request",
)
async def respond_to_connection(
    connection_id: UUID,
    data: ConnectionRespond,
    current_user: User = Depends(get_current_user),
    service: ConnectionService = Depends(get_connection_service),
) -> ConnectionResponse:
    return await service.respond(connection_id, current_user, ConnectionStatus(data.status))
