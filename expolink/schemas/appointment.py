"""
Pydantic schemas for meetings (appointments).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from expolink.core.timeutil import as_utc
from expolink.models.appointment import Appointment, AppointmentStatus
from expolink.schemas.auth import UserSummaryResponse


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------

class AppointmentCreate(BaseModel):
    """Request body for POST /appointments."""
    target_user_id: uuid.UUID
    scheduled_at: datetime
    note: str | None = Field(default=None, max_length=1000)

    @field_validator("scheduled_at")
    @classmethod
    def scheduled_at_aware(cls, v: datetime) -> datetime:
        # Naive datetimes from the client are taken as UTC
        return as_utc(v)


class AppointmentStatusUpdate(BaseModel):
    """Request body for PATCH /appointments/{id}/status."""
    status: AppointmentStatus


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------

class AppointmentResponse(BaseModel):
    id: uuid.UUID
    status: AppointmentStatus
    scheduled_at: datetime
    note: str | None
    booker: UserSummaryResponse
    target_user: UserSummaryResponse
    created_at: datetime

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> AppointmentResponse:
        return cls(
            id=appointment.id,
            status=appointment.status,
            scheduled_at=as_utc(appointment.scheduled_at),
            note=appointment.note,
            booker=UserSummaryResponse.from_user(appointment.booker),
            target_user=UserSummaryResponse.from_user(appointment.target_user),
            created_at=as_utc(appointment.created_at),
        )


class AppointmentListResponse(BaseModel):
    data: list[AppointmentResponse]
    total: int
