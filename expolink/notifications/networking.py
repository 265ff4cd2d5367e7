"""
Networking notifications.
"""

from __future__ import annotations

from typing import Any

from expolink.core.i18n import translate
from expolink.models.app_notification import NotificationType
from expolink.models.user import User
from expolink.notifications.base import CLICK_ACTION, DATABASE, Notification


class NewConnectionRequest(Notification):
    """In-app only: someone asked to connect."""

    channels = (DATABASE,)

    def __init__(self, requester: User) -> None:
        self.requester = requester

    def to_app(self, notifiable: User) -> dict[str, Any]:
        locale = notifiable.locale
        return {
            "title": translate("connection_request_title", locale),
            "body": translate("connection_request_body", locale, name=self.requester.full_name),
            "type": NotificationType.info.value,
            "data": {
                "screen": "/networking",
                "arg": "requests_tab",
                "click_action": CLICK_ACTION,
            },
        }
