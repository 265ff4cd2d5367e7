"""
Networking connection requests.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.models.connection import Connection, ConnectionStatus
from expolink.models.user import User
from expolink.notifications.dispatcher import NotificationDispatcher
from expolink.notifications.networking import NewConnectionRequest
from expolink.schemas.connection import ConnectionListResponse, ConnectionResponse
from expolink.services.user_service import UserService

logger = logging.getLogger(__name__)


class ConnectionService:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._users = UserService(db)
        self._notifier = NotificationDispatcher(db)

    # ------------------------------------------------------------------
    # POST /connections
    # ------------------------------------------------------------------

    async def request(self, requester: User, target_id: uuid.UUID) -> ConnectionResponse:
        if target_id == requester.id:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"code": "SELF_CONNECTION", "message": "You cannot connect with yourself."},
            )
        target = await self._users.get_or_404(target_id)

        existing = await self._db.scalar(
            select(Connection.id).where(
                or_(
                    and_(Connection.requester_id == requester.id, Connection.target_id == target.id),
                    and_(Connection.requester_id == target.id, Connection.target_id == requester.id),
                )
            )
        )
        if existing is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "CONNECTION_EXISTS", "message": "A connection with this attendee already exists."},
            )

        connection = Connection(
            requester_id=requester.id,
            target_id=target.id,
            status=ConnectionStatus.pending,
        )
        connection.requester = requester
        connection.target = target
        self._db.add(connection)
        await self._db.flush()

        await self._notifier.send(target, NewConnectionRequest(requester))
        logger.info("Connection %s requested by %s", connection.id, requester.id)
        return ConnectionResponse.from_connection(connection)

    # ------------------------------------------------------------------
    # GET /connections
    # ------------------------------------------------------------------

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        status_filter: ConnectionStatus | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> ConnectionListResponse:
        stmt = select(Connection).where(
            or_(Connection.requester_id == user_id, Connection.target_id == user_id)
        )
        if status_filter is not None:
            stmt = stmt.where(Connection.status == status_filter)

        total = await self._db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        result = await self._db.execute(
            stmt.order_by(Connection.created_at.desc()).offset(skip).limit(limit)
        )
        return ConnectionListResponse(
            data=[ConnectionResponse.from_connection(c) for c in result.scalars().all()],
            total=total,
        )

    # ------------------------------------------------------------------
    # PATCH /connections/{id}
    # ------------------------------------------------------------------

    async def respond(
        self,
        connection_id: uuid.UUID,
        actor: User,
        new_status: ConnectionStatus,
    ) -> ConnectionResponse:
        """Accept or decline a pending request. Only its target may answer."""
        connection = await self._db.get(Connection, connection_id)
        if connection is None or actor.id not in (connection.requester_id, connection.target_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "CONNECTION_NOT_FOUND", "message": "Connection not found."},
            )
        if actor.id != connection.target_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "FORBIDDEN", "message": "Only the invited attendee can answer this request."},
            )
        if connection.status != ConnectionStatus.pending:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "ALREADY_ANSWERED", "message": "This request has already been answered."},
            )

        connection.status = new_status
        await self._db.flush()
        logger.info("Connection %s %s by %s", connection.id, new_status.value, actor.id)
        return ConnectionResponse.from_connection(connection)
