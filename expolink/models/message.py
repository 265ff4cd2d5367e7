"""
Direct message ORM model.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expolink.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from expolink.models.user import User


class Message(Base, UUIDMixin, TimestampMixin):
    """A message from one user to another."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_pair_created", "sender_id", "receiver_id", "created_at"),
    )

    sender_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    receiver_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    sender: Mapped[User] = relationship("User", foreign_keys=[sender_id], lazy="raise")
    receiver: Mapped[User] = relationship("User", foreign_keys=[receiver_id], lazy="raise")

    def __repr__(self) -> str:
        return f"<Message id={self.id} sender_id={self.sender_id} receiver_id={self.receiver_id}>"
