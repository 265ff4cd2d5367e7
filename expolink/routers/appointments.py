"""
Meeting (appointment) endpoints.

POST   /appointments              — book a meeting
GET    /appointments              — meetings the user takes part in
GET    /appointments/{id}         — one meeting (participants only)
PATCH  /appointments/{id}/status  — confirm, decline or cancel
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.database import get_db
from expolink.core.dependencies import get_current_user
from expolink.models.appointment import AppointmentStatus
from expolink.models.user import User
from expolink.schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from expolink.services.appointment_service import AppointmentService

router = APIRouter()


def get_appointment_service(db: AsyncSession = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db=db)


# ---------------------------------------------------------------------------
# Book
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a meeting with another attendee",
)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    return await service.create(current_user, data)


# ---------------------------------------------------------------------------
# List / detail
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=AppointmentListResponse,
    summary="List my meetings",
)
async def list_appointments(
    status_filter: AppointmentStatus | None = Query(default=None, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentListResponse:
    return await service.list_for_user(
        user_id=current_user.id,
        status_filter=status_filter,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Get a meeting",
)
async def get_appointment(
    appointment_id: UUID,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    appointment = await service.get_for_participant(appointment_id, current_user.id)
    return AppointmentResponse.from_appointment(appointment)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    summary="Confirm, decline or cancel a meeting",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    """
    Allowed transitions:

    - requested → confirmed / declined (invited attendee only)
    - requested / confirmed → cancelled (either participant)
    """
    return await service.update_status(appointment_id, current_user, data.status)
