"""
Profile business logic for the signed-in attendee.

Profile completion, avatar replacement, locale, push token, stats.
"""

from __future__ import annotations

import logging

from fastapi import UploadFile
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.security import badge_prefix_for_role
from expolink.core.storage import delete_local, store_image
from expolink.models.appointment import Appointment, AppointmentStatus
from expolink.models.connection import Connection, ConnectionStatus
from expolink.models.role import RoleSlug
from expolink.models.user import User
from expolink.schemas.auth import CompleteProfileRequest, StatsResponse
from expolink.services.user_service import UserService

logger = logging.getLogger(__name__)


class ProfileService:
    """Mutations on the current user's own profile."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.users = UserService(db)

    # -----------------------------------------------------------------------
    # Complete profile
    # -----------------------------------------------------------------------

    async def complete_profile(
        self,
        user: User,
        data: CompleteProfileRequest,
        avatar: UploadFile | None = None,
    ) -> User:
        """
        Fill in the profile (typically after a social sign-up).

        - A new avatar replaces a previous local one (external URLs are kept on disk)
        - The badge code is re-drawn only when its prefix does not match the role
        - All roles are replaced with the chosen one
        - An omitted job title keeps the stored one; the profile becomes visible
        """
        is_exhibitor = data.role == RoleSlug.exhibitor.value
        if is_exhibitor:
            await self.users.ensure_company_exists(data.company_id)

        if avatar is not None:
            new_path = await store_image(avatar, field="avatar")
            delete_local(user.avatar)
            user.avatar = new_path

        user.name = data.name
        user.last_name = data.last_name
        user.phone = data.phone
        user.country = data.country
        user.city = data.city
        user.company_sector = data.company_sector
        if data.job_title is not None:
            user.job_title = data.job_title
        user.is_visible = True
        user.company_id = data.company_id if is_exhibitor else None
        user.company_name = None if is_exhibitor else data.company_name

        if not user.badge_code.startswith(badge_prefix_for_role(data.role)):
            user.badge_code = await self.users.allocate_badge_code(data.role, exclude_user_id=user.id)

        await self.users.sync_role(user, data.role)
        await self.users.reload(user)
        logger.info("User %s completed profile as %s", user.id, data.role)
        return user

    # -----------------------------------------------------------------------
    # Avatar
    # -----------------------------------------------------------------------

    async def update_avatar(self, user: User, avatar: UploadFile) -> User:
        new_path = await store_image(avatar, field="avatar")
        delete_local(user.avatar)
        user.avatar = new_path
        return await self.users.reload(user)

    # -----------------------------------------------------------------------
    # Locale / push token
    # -----------------------------------------------------------------------

    async def update_locale(self, user: User, locale: str) -> User:
        user.locale = locale
        return await self.users.reload(user)

    async def update_fcm_token(self, user: User, fcm_token: str) -> None:
        user.fcm_token = fcm_token
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Stats
    # -----------------------------------------------------------------------

    async def stats(self, user: User) -> StatsResponse:
        """Accepted connections and confirmed meetings the user takes part in."""
        connections = await self.db.scalar(
            select(func.count(Connection.id)).where(
                Connection.status == ConnectionStatus.accepted,
                or_(Connection.requester_id == user.id, Connection.target_id == user.id),
            )
        )
        meetings = await self.db.scalar(
            select(func.count(Appointment.id)).where(
                Appointment.status == AppointmentStatus.confirmed,
                or_(Appointment.booker_id == user.id, Appointment.target_user_id == user.id),
            )
        )
        return StatsResponse(connections=connections or 0, meetings=meetings or 0)
