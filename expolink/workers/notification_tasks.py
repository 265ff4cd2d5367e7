"""
Push notification background tasks.

Sends a single message to one device through Firebase Cloud Messaging.
Tokens reported as unregistered are cleared from the user row.
"""

from __future__ import annotations

import logging

from expolink.workers.celery_app import celery_app
from expolink.workers.runner import run_async

logger = logging.getLogger(__name__)


def _firebase_app():  # type: ignore[no-untyped-def]
    """Initialise the default firebase-admin app once per worker process."""
    import firebase_admin
    from firebase_admin import credentials

    from expolink.core.config import settings

    try:
        return firebase_admin.get_app()
    except ValueError:
        if settings.FIREBASE_CREDENTIALS_FILE:
            cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_FILE)
        else:
            cred = credentials.ApplicationDefault()
        return firebase_admin.initialize_app(cred)


def build_message(token: str, title: str, body: str, data: dict[str, str]):  # type: ignore[no-untyped-def]
    from firebase_admin import messaging

    from expolink.notifications.base import CLICK_ACTION

    return messaging.Message(
        token=token,
        notification=messaging.Notification(title=title, body=body),
        data={key: str(value) for key, value in data.items()},
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(click_action=CLICK_ACTION, sound="default"),
        ),
        apns=messaging.APNSConfig(payload=messaging.APNSPayload(aps=messaging.Aps(sound="default"))),
    )


@celery_app.task(
    name="expolink.workers.notification_tasks.send_push_notification",
    bind=True,
    max_retries=3,
    default_retry_delay=10,
)
def send_push_notification(
    self,  # type: ignore[no-untyped-def]
    token: str,
    title: str,
    body: str,
    data: dict[str, str] | None = None,
) -> dict[str, str]:
    """
    Deliver one push message.

    Returns:
        Dict with status and, when sent, the FCM message id.
    """
    from firebase_admin import messaging

    try:
        message_id = messaging.send(
            build_message(token, title, body, data or {}),
            app=_firebase_app(),
        )
        return {"status": "sent", "message_id": message_id}
    except messaging.UnregisteredError:
        logger.info("FCM token is no longer registered, clearing it")
        run_async(clear_stale_token(token))
        return {"status": "unregistered"}
    except Exception as exc:
        logger.error("send_push_notification failed: %s", exc)
        raise self.retry(exc=exc)


async def clear_stale_token(token: str) -> int:
    """Null out the token on every user still holding it."""
    from sqlalchemy import update

    from expolink.core.database import AsyncSessionLocal
    from expolink.models.user import User

    async with AsyncSessionLocal() as session:
        result = await session.execute(
            update(User).where(User.fcm_token == token).values(fcm_token=None)
        )
        await session.commit()
    return result.rowcount or 0
