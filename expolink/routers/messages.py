"""
Direct messaging endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.database import get_db
from expolink.core.dependencies import get_current_user
from expolink.models.user import User
from expolink.schemas.message import (
    ConversationListResponse,
    MessageCreate,
    MessageResponse,
    ThreadResponse,
)
from expolink.services.message_service import MessageService

router = APIRouter()


def get_message_service(db: AsyncSession = Depends(get_db)) -> MessageService:
    return MessageService(db=db)


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
async def send_message(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> MessageResponse:
    return await service.send(current_user, data)


@router.get(
    "/conversations",
    response_model=ConversationListResponse,
    summary="List my conversations",
)
async def list_conversations(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=25, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> ConversationListResponse:
    return await service.conversations(current_user.id, skip=skip, limit=limit)


@router.get(
    "/with/{user_id}",
    response_model=ThreadResponse,
    summary="Messages exchanged with one attendee",
)
async def get_thread(
    user_id: UUID,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> ThreadResponse:
    """Oldest first. Messages received from this attendee are marked as read."""
    return await service.thread(current_user.id, user_id, skip=skip, limit=limit)
