"""
Celery application instance.

Configured with Redis broker and backend. Beat runs the appointment
reminder sweep every ten minutes.
"""

from celery import Celery

from expolink.core.config import settings

celery_app = Celery(
    "expolink",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "expolink.workers.email_tasks",
        "expolink.workers.notification_tasks",
        "expolink.workers.reminder_tasks",
    ],
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    # Timezone
    timezone="UTC",
    enable_utc=True,
    # Results
    result_expires=3600,
    # Retry policy
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Concurrency
    worker_prefetch_multiplier=1,
    # Routing
    task_default_queue="default",
    task_queues={
        "default": {},
        "email": {},
        "notifications": {},
    },
    task_routes={
        "expolink.workers.email_tasks.*": {"queue": "email"},
        "expolink.workers.notification_tasks.*": {"queue": "notifications"},
        "expolink.workers.reminder_tasks.*": {"queue": "default"},
    },
    # Periodic tasks
    beat_schedule={
        "send-appointment-reminders": {
            "task": "expolink.workers.reminder_tasks.send_appointment_reminders",
            "schedule": settings.REMINDER_SWEEP_SECONDS,
        },
    },
)
