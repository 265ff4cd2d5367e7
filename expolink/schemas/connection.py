"""
Pydantic schemas for networking connections.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from expolink.core.timeutil import as_utc
from expolink.models.connection import Connection, ConnectionStatus
from expolink.schemas.auth import UserSummaryResponse


class ConnectionCreate(BaseModel):
    """Request body for POST /connections."""
    target_id: uuid.UUID


class ConnectionRespond(BaseModel):
    """Request body for PATCH /connections/{id}."""
    status: Literal["accepted", "declined"]


class ConnectionResponse(BaseModel):
    id: uuid.UUID
    status: ConnectionStatus
    requester: UserSummaryResponse
    target: UserSummaryResponse
    created_at: datetime

    @classmethod
    def from_connection(cls, connection: Connection) -> ConnectionResponse:
        return cls(
            id=connection.id,
            status=connection.status,
            requester=UserSummaryResponse.from_user(connection.requester),
            target=UserSummaryResponse.from_user(connection.target),
            created_at=as_utc(connection.created_at),
        )


class ConnectionListResponse(BaseModel):
    data: list[ConnectionResponse]
    total: int
