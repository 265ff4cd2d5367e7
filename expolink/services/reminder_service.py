"""
Appointment reminder scan.

Two windows are checked on every run:

- hour: confirmed meetings starting between 55 and 65 minutes from now
- day:  at 9 AM (application timezone), confirmed meetings scheduled on
        tomorrow's calendar date

Both participants receive an AppointmentReminder. A Redis SET NX key per
(window, appointment) makes repeated runs idempotent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo

import redis.asyncio as aioredis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.config import settings
from expolink.core.security import reminder_redis_key
from expolink.core.timeutil import as_utc, utcnow
from expolink.models.appointment import Appointment, AppointmentStatus
from expolink.notifications.appointments import AppointmentReminder
from expolink.notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


@dataclass
class ReminderRun:
    """Outcome of one scan."""

    hour: list[Appointment] = field(default_factory=list)
    day: list[Appointment] = field(default_factory=list)
    skipped: int = 0
    # Redis keys taken by this run
    claimed: list[str] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return len(self.hour) + len(self.day)


class ReminderService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self._db = db
        self._redis = redis
        self._notifier = NotificationDispatcher(db)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def due_within_hour(self, now: datetime) -> list[Appointment]:
        start = now + timedelta(minutes=settings.REMINDER_WINDOW_START_MINUTES)
        end = now + timedelta(minutes=settings.REMINDER_WINDOW_END_MINUTES)
        result = await self._db.execute(
            select(Appointment)
            .where(
                Appointment.status == AppointmentStatus.confirmed,
                Appointment.scheduled_at.between(start, end),
            )
            .order_by(Appointment.scheduled_at)
        )
        return list(result.scalars().all())

    async def due_tomorrow(self, now: datetime) -> list[Appointment]:
        """Meetings on tomorrow's date in the application timezone."""
        tz = ZoneInfo(settings.APP_TIMEZONE)
        tomorrow = now.astimezone(tz).date() + timedelta(days=1)
        start = datetime.combine(tomorrow, time.min, tzinfo=tz).astimezone(UTC)
        end = start + timedelta(days=1)
        result = await self._db.execute(
            select(Appointment)
            .where(
                Appointment.status == AppointmentStatus.confirmed,
                Appointment.scheduled_at >= start,
                Appointment.scheduled_at < end,
            )
            .order_by(Appointment.scheduled_at)
        )
        return list(result.scalars().all())

    @staticmethod
    def is_day_ahead_hour(now: datetime) -> bool:
        return now.astimezone(ZoneInfo(settings.APP_TIMEZONE)).hour == settings.REMINDER_DAY_AHEAD_HOUR

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, now: datetime | None = None) -> ReminderRun:
        """
        Send every due reminder inside the caller's session.

        The caller commits. When this raises, or when the caller's commit
        fails, the claimed keys must be given back with ``release`` so the
        next sweep sends those reminders again.
        """
        now = as_utc(now) if now else utcnow()
        outcome = ReminderRun()

        try:
            for appointment in await self.due_within_hour(now):
                if await self._remind(appointment, AppointmentReminder.HOUR, outcome):
                    outcome.hour.append(appointment)
                    logger.info("Reminder sent for appointment ID: %s", appointment.id)
                else:
                    outcome.skipped += 1

            if self.is_day_ahead_hour(now):
                for appointment in await self.due_tomorrow(now):
                    if await self._remind(appointment, AppointmentReminder.DAY, outcome):
                        outcome.day.append(appointment)
                        logger.info("Tomorrow reminder sent for appointment ID: %s", appointment.id)
                    else:
                        outcome.skipped += 1
        except Exception:
            await self.release(outcome)
            raise

        logger.info(
            "Appointment reminders sent: %d within the hour, %d for tomorrow, %d already sent",
            len(outcome.hour),
            len(outcome.day),
            outcome.skipped,
        )
        return outcome

    async def release(self, outcome: ReminderRun) -> None:
        """Drop the keys claimed by a run whose notifications were not persisted."""
        if outcome.claimed:
            await self._redis.delete(*outcome.claimed)
            logger.warning("Released %d reminder claims after a failed run", len(outcome.claimed))
            outcome.claimed.clear()

    async def _remind(self, appointment: Appointment, window: str, outcome: ReminderRun) -> bool:
        """Notify both participants once per (window, appointment)."""
        key = reminder_redis_key(window, str(appointment.id))
        claimed = await self._redis.set(key, "1", nx=True, ex=settings.REMINDER_LOCK_TTL_SECONDS)
        if not claimed:
            return False
        outcome.claimed.append(key)

        booker, target = appointment.booker, appointment.target_user
        await self._notifier.send(booker, AppointmentReminder(appointment, target, window))
        await self._notifier.send(target, AppointmentReminder(appointment, booker, window))
        return True
