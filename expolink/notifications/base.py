"""
Notification base class.

A notification decides which channels it goes through (``via``) and
renders one payload per channel. Channels are identified by name:

    "database"  → AppDatabaseChannel (in-app feed row)
    "fcm"       → FcmChannel (push through Firebase Cloud Messaging)
"""

from __future__ import annotations

from typing import Any

from expolink.models.user import User

DATABASE = "database"
FCM = "fcm"

# Tells the Flutter client to route the tap through its notification handler
CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"


class Notification:
    """Base class for every user-facing notification."""

    channels: tuple[str, ...] = (DATABASE, FCM)

    def via(self, notifiable: User) -> list[str]:
        return list(self.channels)

    def to_app(self, notifiable: User) -> dict[str, Any]:
        """
        Payload for the in-app feed.

        Must return {"title", "body", "type", "data"}.
        """
        raise NotImplementedError

    def to_fcm(self, notifiable: User) -> dict[str, Any]:
        """
        Push payload. FCM only accepts string values in ``data``.
        Defaults to the in-app payload.
        """
        app = self.to_app(notifiable)
        return {
            "title": app["title"],
            "body": app["body"],
            "data": {key: str(value) for key, value in (app.get("data") or {}).items()},
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"
