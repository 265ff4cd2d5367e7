"""
Meeting (appointment) business logic.

Booking, listing and status transitions. Each booking and status change
fans out a notification to the other participant.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.timeutil import utcnow
from expolink.models.appointment import Appointment, AppointmentStatus
from expolink.models.user import User
from expolink.notifications.appointments import MeetingStatusUpdated, NewMeetingRequest
from expolink.notifications.dispatcher import NotificationDispatcher
from expolink.schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
)
from expolink.services.user_service import UserService

logger = logging.getLogger(__name__)

TARGET = "target"
PARTICIPANT = "participant"

# (from, to) → who may perform the transition
TRANSITIONS: dict[tuple[AppointmentStatus, AppointmentStatus], str] = {
    (AppointmentStatus.requested, AppointmentStatus.confirmed): TARGET,
    (AppointmentStatus.requested, AppointmentStatus.declined): TARGET,
    (AppointmentStatus.requested, AppointmentStatus.cancelled): PARTICIPANT,
    (AppointmentStatus.confirmed, AppointmentStatus.cancelled): PARTICIPANT,
}


class AppointmentService:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._users = UserService(db)
        self._notifier = NotificationDispatcher(db)

    # ------------------------------------------------------------------
    # POST /appointments
    # ------------------------------------------------------------------

    async def create(self, booker: User, data: AppointmentCreate) -> AppointmentResponse:
        if data.target_user_id == booker.id:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"code": "SELF_APPOINTMENT", "message": "You cannot book a meeting with yourself."},
            )
        if data.scheduled_at <= utcnow():
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"code": "PAST_DATE", "message": "The meeting must be scheduled in the future."},
            )

        target = await self._users.get_or_404(data.target_user_id)

        appointment = Appointment(
            booker_id=booker.id,
            target_user_id=target.id,
            scheduled_at=data.scheduled_at,
            note=data.note,
            status=AppointmentStatus.requested,
        )
        appointment.booker = booker
        appointment.target_user = target
        self._db.add(appointment)
        await self._db.flush()

        await self._notifier.send(target, NewMeetingRequest(appointment, booker))
        logger.info("Appointment %s booked by %s with %s", appointment.id, booker.id, target.id)
        return AppointmentResponse.from_appointment(appointment)

    # ------------------------------------------------------------------
    # GET /appointments
    # ------------------------------------------------------------------

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        status_filter: AppointmentStatus | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> AppointmentListResponse:
        stmt = select(Appointment).where(
            or_(Appointment.booker_id == user_id, Appointment.target_user_id == user_id)
        )
        if status_filter is not None:
            stmt = stmt.where(Appointment.status == status_filter)

        total = await self._db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        result = await self._db.execute(
            stmt.order_by(Appointment.scheduled_at.asc()).offset(skip).limit(limit)
        )
        return AppointmentListResponse(
            data=[AppointmentResponse.from_appointment(a) for a in result.scalars().all()],
            total=total,
        )

    # ------------------------------------------------------------------
    # GET /appointments/{id}
    # ------------------------------------------------------------------

    async def get_for_participant(self, appointment_id: uuid.UUID, user_id: uuid.UUID) -> Appointment:
        """Participants only; anyone else gets a 404."""
        appointment = await self._db.get(Appointment, appointment_id)
        if appointment is None or not appointment.involves(user_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "APPOINTMENT_NOT_FOUND", "message": "Appointment not found."},
            )
        return appointment

    # ------------------------------------------------------------------
    # PATCH /appointments/{id}/status
    # ------------------------------------------------------------------

    async def update_status(
        self,
        appointment_id: uuid.UUID,
        actor: User,
        new_status: AppointmentStatus,
    ) -> AppointmentResponse:
        appointment = await self.get_for_participant(appointment_id, actor.id)

        allowed = TRANSITIONS.get((appointment.status, new_status))
        if allowed is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "code": "INVALID_TRANSITION",
                    "message": f"Cannot change a {appointment.status.value} meeting to {new_status.value}.",
                },
            )
        if allowed == TARGET and actor.id != appointment.target_user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "FORBIDDEN", "message": "Only the invited attendee can answer this request."},
            )

        appointment.status = new_status
        await self._db.flush()

        other = appointment.other_party(actor.id)
        await self._notifier.send(other, MeetingStatusUpdated(appointment, new_status))
        logger.info("Appointment %s is now %s (by %s)", appointment.id, new_status.value, actor.id)
        return AppointmentResponse.from_appointment(appointment)
