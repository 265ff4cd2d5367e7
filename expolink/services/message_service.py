"""
Direct messaging between attendees.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.timeutil import utcnow
from expolink.models.message import Message
from expolink.models.user import User
from expolink.schemas.auth import UserSummaryResponse
from expolink.schemas.message import (
    ConversationListResponse,
    ConversationSummary,
    MessageCreate,
    MessageResponse,
    ThreadResponse,
)
from expolink.services.user_service import UserService

logger = logging.getLogger(__name__)


def _between(a: uuid.UUID, b: uuid.UUID):
    return or_(
        and_(Message.sender_id == a, Message.receiver_id == b),
        and_(Message.sender_id == b, Message.receiver_id == a),
    )


class MessageService:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._users = UserService(db)

    # ------------------------------------------------------------------
    # POST /messages
    # ------------------------------------------------------------------

    async def send(self, sender: User, data: MessageCreate) -> MessageResponse:
        if data.receiver_id == sender.id:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"code": "SELF_MESSAGE", "message": "You cannot message yourself."},
            )
        receiver = await self._users.get_or_404(data.receiver_id)

        message = Message(sender_id=sender.id, receiver_id=receiver.id, body=data.body)
        self._db.add(message)
        await self._db.flush()
        logger.debug("Message %s from %s to %s", message.id, sender.id, receiver.id)
        return MessageResponse.model_validate(message)

    # ------------------------------------------------------------------
    # GET /messages/conversations
    # ------------------------------------------------------------------

    async def conversations(self, user_id: uuid.UUID, skip: int = 0, limit: int = 25) -> ConversationListResponse:
        """One entry per counterpart, most recent activity first."""
        counterpart = case(
            (Message.sender_id == user_id, Message.receiver_id),
            else_=Message.sender_id,
        ).label("counterpart_id")
        unread = func.sum(
            case(
                (and_(Message.receiver_id == user_id, Message.read_at.is_(None)), 1),
                else_=0,
            )
        ).label("unread_count")

        stmt = (
            select(
                counterpart,
                func.count(Message.id).label("message_count"),
                unread,
                func.max(Message.created_at).label("last_at"),
            )
            .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .group_by(counterpart)
            .order_by(func.max(Message.created_at).desc())
            .offset(skip)
            .limit(limit)
        )
        rows = (await self._db.execute(stmt)).all()

        entries: list[ConversationSummary] = []
        for row in rows:
            other = await self._db.get(User, row.counterpart_id)
            if other is None:
                continue
            last = await self._db.scalar(
                select(Message)
                .where(_between(user_id, other.id))
                .order_by(Message.created_at.desc())
                .limit(1)
            )
            entries.append(
                ConversationSummary(
                    user=UserSummaryResponse.from_user(other),
                    last_message=MessageResponse.model_validate(last),
                    message_count=row.message_count,
                    unread_count=int(row.unread_count or 0),
                )
            )
        return ConversationListResponse(data=entries)

    # ------------------------------------------------------------------
    # GET /messages/with/{user_id}
    # ------------------------------------------------------------------

    async def thread(
        self,
        user_id: uuid.UUID,
        other_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> ThreadResponse:
        """Messages with one counterpart, oldest first. Marks received ones as read."""
        other = await self._users.get_or_404(other_id)

        await self._db.execute(
            update(Message)
            .where(
                Message.sender_id == other_id,
                Message.receiver_id == user_id,
                Message.read_at.is_(None),
            )
            .values(read_at=utcnow())
            .execution_options(synchronize_session=False)
        )

        total = await self._db.scalar(
            select(func.count(Message.id)).where(_between(user_id, other_id))
        ) or 0
        result = await self._db.execute(
            select(Message)
            .where(_between(user_id, other_id))
            .order_by(Message.created_at.asc())
            .offset(skip)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        messages = result.scalars().all()

        return ThreadResponse(
            user=UserSummaryResponse.from_user(other),
            data=[MessageResponse.model_validate(m) for m in messages],
            total=total,
        )
