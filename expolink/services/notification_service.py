"""
Business logic for the in-app notification feed.
Handles listing and read-state management.
All queries scoped by user_id.
"""

from __future__ import annotations

import uuid

from fastapi import HTTPException
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.models.app_notification import AppNotification
from expolink.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)


class NotificationService:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # GET /notifications
    # ------------------------------------------------------------------

    async def list_notifications(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 25,
    ) -> NotificationListResponse:
        """
        List notifications for the current user, newest first.
        Optionally filter to unread only.
        """
        base_stmt = select(AppNotification).where(AppNotification.user_id == user_id)

        if unread_only:
            base_stmt = base_stmt.where(AppNotification.is_read.is_(False))

        total = await self._db.scalar(
            select(func.count()).select_from(base_stmt.subquery())
        ) or 0

        # Unread count (always, regardless of filter)
        unread_count = await self._db.scalar(
            select(func.count()).where(
                AppNotification.user_id == user_id,
                AppNotification.is_read.is_(False),
            )
        ) or 0

        result = await self._db.execute(
            base_stmt
            .order_by(AppNotification.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        notifications = result.scalars().all()

        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in notifications],
            total=total,
            unread_count=unread_count,
        )

    # ------------------------------------------------------------------
    # PATCH /notifications/{id}/read
    # ------------------------------------------------------------------

    async def mark_read(
        self,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> NotificationResponse:
        """
        Mark a single notification as read.
        Scoped to user_id to prevent cross-user updates.
        """
        notification = await self._db.scalar(
            select(AppNotification).where(
                AppNotification.id == notification_id,
                AppNotification.user_id == user_id,
            )
        )
        if not notification:
            raise HTTPException(
                status_code=404,
                detail={
                    "code": "NOTIFICATION_NOT_FOUND",
                    "message": "Notification not found.",
                },
            )

        notification.is_read = True
        await self._db.flush()
        return NotificationResponse.model_validate(notification)

    # ------------------------------------------------------------------
    # POST /notifications/mark-all-read
    # ------------------------------------------------------------------

    async def mark_all_read(self, user_id: uuid.UUID) -> MarkAllReadResponse:
        """
        Mark all unread notifications as read for a user.
        Returns count of updated rows.
        """
        result = await self._db.execute(
            update(AppNotification)
            .where(
                AppNotification.user_id == user_id,
                AppNotification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        return MarkAllReadResponse(updated=result.rowcount)
