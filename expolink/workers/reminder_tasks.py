"""
Appointment reminder sweep, scheduled by Celery beat.
"""

from __future__ import annotations

import logging

from expolink.workers.celery_app import celery_app
from expolink.workers.runner import run_async

logger = logging.getLogger(__name__)


@celery_app.task(
    name="expolink.workers.reminder_tasks.send_appointment_reminders",
    bind=True,
    max_retries=1,
    default_retry_delay=60,
)
def send_appointment_reminders(self) -> dict[str, int]:  # type: ignore[no-untyped-def]
    try:
        return run_async(sweep())
    except Exception as exc:
        logger.error("send_appointment_reminders failed: %s", exc)
        raise self.retry(exc=exc)


async def sweep() -> dict[str, int]:
    """One reminder pass with its own session and Redis client."""
    import redis.asyncio as aioredis

    from expolink.core.config import settings
    from expolink.core.database import AsyncSessionLocal
    from expolink.services.reminder_service import ReminderService

    redis = aioredis.from_url(str(settings.REDIS_URL), encoding="utf-8", decode_responses=True)
    try:
        async with AsyncSessionLocal() as session:
            service = ReminderService(db=session, redis=redis)
            run = await service.run()
            try:
                await session.commit()
            except Exception:
                await service.release(run)
                raise
    finally:
        await redis.aclose()

    return {"hour": len(run.hour), "day": len(run.day), "skipped": run.skipped}
