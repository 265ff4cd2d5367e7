"""
Fans a notification out to the channels it asks for.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from expolink.models.user import User
from expolink.notifications.base import Notification
from expolink.notifications.channels import AppDatabaseChannel, FcmChannel

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, db: AsyncSession) -> None:
        self.channels: dict[str, Any] = {
            channel.name: channel for channel in (AppDatabaseChannel(db), FcmChannel())
        }

    async def send(self, notifiable: User, notification: Notification) -> dict[str, Any]:
        """
        Deliver through every channel returned by ``notification.via``.

        Returns {channel name: channel result}.
        """
        results: dict[str, Any] = {}
        for name in notification.via(notifiable):
            channel = self.channels.get(name)
            if channel is None:
                logger.warning("Unknown notification channel %r for %r", name, notification)
                continue
            results[name] = await channel.send(notifiable, notification)

        logger.info(
            "Sent %s to user %s via %s",
            type(notification).__name__,
            notifiable.id,
            ", ".join(results) or "no channel",
        )
        return results
