"""
Appointment (B2B meeting) ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expolink.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from expolink.models.user import User


class AppointmentStatus(str, enum.Enum):
    requested = "requested"
    confirmed = "confirmed"
    declined = "declined"
    cancelled = "cancelled"


class Appointment(Base, UUIDMixin, TimestampMixin):
    """A meeting booked by one attendee with another."""

    __tablename__ = "appointments"

    booker_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus, name="appointment_status", native_enum=False, length=20),
        nullable=False,
        default=AppointmentStatus.requested,
        index=True,
    )

    # Relationships
    booker: Mapped[User] = relationship("User", foreign_keys=[booker_id], lazy="selectin")
    target_user: Mapped[User] = relationship(
        "User", foreign_keys=[target_user_id], lazy="selectin"
    )

    def involves(self, user_id: UUID) -> bool:
        return user_id in (self.booker_id, self.target_user_id)

    def other_party(self, user_id: UUID) -> User:
        return self.target_user if user_id == self.booker_id else self.booker

    def __repr__(self) -> str:
        return f"<Appointment id={self.id} status={self.status.value} scheduled_at={self.scheduled_at}>"
