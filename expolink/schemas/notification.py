"""
Pydantic schemas for the in-app notification feed.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from expolink.models.app_notification import NotificationType


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------

class NotificationResponse(BaseModel):
    """Single notification response."""
    id: uuid.UUID
    type: NotificationType
    title: str
    body: str | None
    data: dict[str, Any] | None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    """Response for GET /notifications."""
    data: list[NotificationResponse]
    total: int
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int
