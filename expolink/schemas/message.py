"""
Pydantic schemas for direct messages.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from expolink.schemas.auth import UserSummaryResponse


class MessageCreate(BaseModel):
    """Request body for POST /messages."""
    receiver_id: uuid.UUID
    body: str = Field(min_length=1, max_length=5000)


class MessageResponse(BaseModel):
    id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    body: str
    read_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ConversationSummary(BaseModel):
    """One entry of GET /messages/conversations."""
    user: UserSummaryResponse
    last_message: MessageResponse
    message_count: int
    unread_count: int


class ConversationListResponse(BaseModel):
    data: list[ConversationSummary]


class ThreadResponse(BaseModel):
    """Response for GET /messages/with/{user_id}."""
    user: UserSummaryResponse
    data: list[MessageResponse]
    total: int
