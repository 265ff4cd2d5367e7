"""
Delivery channels.

AppDatabaseChannel writes to the app_notifications table inside the
caller's session. FcmChannel hands the push off to Celery so a slow or
failing FCM call never blocks the request.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from expolink.models.app_notification import AppNotification, NotificationType
from expolink.models.user import User
from expolink.notifications.base import DATABASE, FCM, Notification

logger = logging.getLogger(__name__)


class AppDatabaseChannel:
    name = DATABASE

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def send(self, notifiable: User, notification: Notification) -> AppNotification:
        payload = notification.to_app(notifiable)
        row = AppNotification(
            user_id=notifiable.id,
            title=payload["title"],
            body=payload.get("body"),
            type=NotificationType(payload.get("type", NotificationType.info)),
            data=payload.get("data"),
            is_read=False,
        )
        self.db.add(row)
        await self.db.flush()
        return row


class FcmChannel:
    name = FCM

    async def send(self, notifiable: User, notification: Notification) -> bool:
        """Queue the push. Returns False when the user has no device token."""
        if not notifiable.fcm_token:
            logger.debug("User %s has no FCM token, skipping push", notifiable.id)
            return False

        payload = notification.to_fcm(notifiable)

        from expolink.workers.notification_tasks import send_push_notification
        send_push_notification.delay(
            token=notifiable.fcm_token,
            title=payload["title"],
            body=payload["body"],
            data=payload.get("data") or {},
        )
        return True
