"""
Networking connection ORM model.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expolink.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from expolink.models.user import User


class ConnectionStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class Connection(Base, UUIDMixin, TimestampMixin):
    """A connection request between two attendees."""

    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("requester_id", "target_id", name="uq_connections_pair"),
    )

    requester_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[ConnectionStatus] = mapped_column(
        Enum(ConnectionStatus, name="connection_status", native_enum=False, length=20),
        nullable=False,
        default=ConnectionStatus.pending,
    )

    # Relationships
    requester: Mapped[User] = relationship("User", foreign_keys=[requester_id], lazy="selectin")
    target: Mapped[User] = relationship("User", foreign_keys=[target_id], lazy="selectin")

    def __repr__(self) -> str:
        return f"<Connection id={self.id} status={self.status.value}>"
