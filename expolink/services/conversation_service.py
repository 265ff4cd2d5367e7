"""
Admin view over direct messages grouped into conversations.

A conversation is the unordered pair of participants; ``user_1`` is the
smaller id and ``user_2`` the larger one, so both directions of a thread
aggregate into the same row.
"""

from __future__ import annotations

import hashlib
import io
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta
from typing import Literal
from zoneinfo import ZoneInfo

import pandas as pd
from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.config import settings
from expolink.core.storage import public_url
from expolink.core.timeutil import as_utc, utcnow
from expolink.models.message import Message
from expolink.models.role import Role, RoleSlug, RoleUser
from expolink.models.user import User
from expolink.services.pagination import Page, clamp_page

logger = logging.getLogger(__name__)

ActivityPeriod = Literal["today", "week", "month", "quarter", "year"]
SortField = Literal["last_message_at", "total_messages"]

ONLINE_WINDOW = timedelta(minutes=30)

# Upper bounds (hours since last message) of each activity level
ACTIVITY_LEVELS: tuple[tuple[int, str], ...] = (
    (1, "very-high"),
    (6, "high"),
    (24, "medium"),
    (168, "low"),
)


@dataclass
class ConversationMetrics:
    total_conversations: int
    total_messages: int
    active_conversations: int
    avg_messages: float


@dataclass
class Participant:
    """Display data of one side of a conversation; ``user`` is None once deleted."""

    id: uuid.UUID
    user: User | None
    now: datetime

    @property
    def deleted(self) -> bool:
        return self.user is None

    @property
    def name(self) -> str:
        return self.user.full_name if self.user else "Deleted User"

    @property
    def email(self) -> str:
        return self.user.email if self.user else ""

    @property
    def avatar_url(self) -> str | None:
        if self.user is None:
            return None
        return public_url(self.user.avatar) or gravatar_url(self.user.email)

    @property
    def company(self) -> str:
        if self.user is None or self.user.company is None:
            return "Independent"
        return self.user.company.name

    @property
    def is_exhibitor(self) -> bool:
        return self.user is not None and self.user.has_role(RoleSlug.exhibitor.value)

    @property
    def role_label(self) -> str:
        return "Exhibitor" if self.is_exhibitor else "Visitor"

    @property
    def is_online(self) -> bool:
        if self.user is None or self.user.last_active_at is None:
            return False
        return self.now - as_utc(self.user.last_active_at) < ONLINE_WINDOW


@dataclass
class ConversationRow:
    user_1: Participant
    user_2: Participant
    total_messages: int
    first_message_at: datetime
    last_message_at: datetime
    now: datetime

    @property
    def hours_since_last(self) -> int:
        return int((self.now - self.last_message_at).total_seconds() // 3600)

    @property
    def activity_level(self) -> str:
        return activity_level(self.hours_since_last)

    @property
    def duration_days(self) -> int:
        return (self.last_message_at - self.first_message_at).days

    @property
    def duration_text(self) -> str:
        return duration_text(self.duration_days)

    @property
    def last_activity_text(self) -> str:
        return humanize_since(self.now - self.last_message_at)

    @property
    def is_recent(self) -> bool:
        return self.hours_since_last < 24


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def gravatar_url(email: str) -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}?d=mp&s=200"


def activity_level(hours_ago: int) -> str:
    for limit, level in ACTIVITY_LEVELS:
        if hours_ago < limit:
            return level
    return "inactive"


def duration_text(days: int) -> str:
    if days <= 0:
        return "Today"
    if days == 1:
        return "1 day"
    return f"{days} days"


def humanize_since(delta: timedelta) -> str:
    seconds = int(delta.total_seconds())
    if seconds < 60:
        return "just now"
    for unit_seconds, unit in ((86400 * 365, "year"), (86400 * 30, "month"), (86400 * 7, "week"),
                               (86400, "day"), (3600, "hour"), (60, "minute")):
        if seconds >= unit_seconds:
            count = seconds // unit_seconds
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def activity_threshold(period: str | None, now: datetime) -> datetime | None:
    """Lower bound on message created_at for an activity period; None means all time."""
    if period == "today":
        tz = ZoneInfo(settings.APP_TIMEZONE)
        return datetime.combine(now.astimezone(tz).date(), time.min, tzinfo=tz).astimezone(UTC)
    days = {"week": 7, "month": 30, "quarter": 91, "year": 365}.get(period or "")
    return now - timedelta(days=days) if days else None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ConversationService:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    @staticmethod
    def _pair_columns():
        user_1 = case(
            (Message.sender_id < Message.receiver_id, Message.sender_id),
            else_=Message.receiver_id,
        )
        user_2 = case(
            (Message.sender_id < Message.receiver_id, Message.receiver_id),
            else_=Message.sender_id,
        )
        return user_1, user_2

    async def _count_pairs(self, *conditions) -> int:
        user_1, user_2 = self._pair_columns()
        pairs = select(user_1.label("u1"), user_2.label("u2")).where(*conditions).group_by(user_1, user_2)
        return await self._db.scalar(select(func.count()).select_from(pairs.subquery())) or 0

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    async def metrics(self, now: datetime | None = None) -> ConversationMetrics:
        now = now or utcnow()
        total_conversations = await self._count_pairs()
        total_messages = await self._db.scalar(select(func.count(Message.id))) or 0
        active = await self._count_pairs(Message.created_at >= now - timedelta(days=1))
        avg = round(total_messages / total_conversations, 1) if total_conversations else 0.0
        return ConversationMetrics(
            total_conversations=total_conversations,
            total_messages=total_messages,
            active_conversations=active,
            avg_messages=avg,
        )

    # ------------------------------------------------------------------
    # Filtered listing
    # ------------------------------------------------------------------

    def _filters(self, search: str | None, role: str | None, activity: str | None, now: datetime) -> list:
        conditions = []

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            matching = select(User.id).where(
                or_(User.name.ilike(pattern), User.last_name.ilike(pattern), User.email.ilike(pattern))
            )
            conditions.append(or_(Message.sender_id.in_(matching), Message.receiver_id.in_(matching)))

        if role in (RoleSlug.exhibitor.value, RoleSlug.visitor.value):
            holders = select(RoleUser.user_id).join(Role, Role.id == RoleUser.role_id).where(Role.slug == role)
            conditions.append(or_(Message.sender_id.in_(holders), Message.receiver_id.in_(holders)))

        threshold = activity_threshold(activity, now)
        if threshold is not None:
            conditions.append(Message.created_at >= threshold)

        return conditions

    async def _rows(
        self,
        search: str | None,
        role: str | None,
        activity: str | None,
        sort: str | None,
        direction: str | None,
        now: datetime,
        offset: int | None = None,
        limit: int | None = None,
    ) -> tuple[list[ConversationRow], int]:
        user_1, user_2 = self._pair_columns()
        last_at = func.max(Message.created_at).label("last_message_at")
        total = func.count(Message.id).label("total_messages")

        stmt = (
            select(
                user_1.label("user_1_id"),
                user_2.label("user_2_id"),
                total,
                func.min(Message.created_at).label("first_message_at"),
                last_at,
            )
            .where(*self._filters(search, role, activity, now))
            .group_by(user_1, user_2)
        )

        count = await self._db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

        sort_column = func.count(Message.id) if sort == "total_messages" else func.max(Message.created_at)
        descending = (direction or "desc").lower() != "asc"
        stmt = stmt.order_by(sort_column.desc() if descending else sort_column.asc())
        if offset is not None:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        records = (await self._db.execute(stmt)).all()

        user_ids = {r.user_1_id for r in records} | {r.user_2_id for r in records}
        users: dict[uuid.UUID, User] = {}
        if user_ids:
            result = await self._db.execute(select(User).where(User.id.in_(user_ids)))
            users = {u.id: u for u in result.scalars().all()}

        rows = [
            ConversationRow(
                user_1=Participant(r.user_1_id, users.get(r.user_1_id), now),
                user_2=Participant(r.user_2_id, users.get(r.user_2_id), now),
                total_messages=r.total_messages,
                first_message_at=as_utc(r.first_message_at),
                last_message_at=as_utc(r.last_message_at),
                now=now,
            )
            for r in records
        ]
        return rows, count

    async def paginate(
        self,
        search: str | None = None,
        role: str | None = None,
        activity: str | None = None,
        sort: str | None = None,
        direction: str | None = None,
        page: int | None = 1,
        now: datetime | None = None,
    ) -> Page[ConversationRow]:
        now = now or utcnow()
        page = clamp_page(page)
        per_page = settings.ADMIN_PAGE_SIZE
        rows, total = await self._rows(
            search, role, activity, sort, direction, now,
            offset=(page - 1) * per_page, limit=per_page,
        )
        return Page(items=rows, total=total, page=page, per_page=per_page)

    # ------------------------------------------------------------------
    # Single conversation
    # ------------------------------------------------------------------

    async def thread(self, user_1_id: uuid.UUID, user_2_id: uuid.UUID) -> tuple[Participant, Participant, list[Message]]:
        now = utcnow()
        result = await self._db.execute(
            select(Message)
            .where(
                or_(
                    and_(Message.sender_id == user_1_id, Message.receiver_id == user_2_id),
                    and_(Message.sender_id == user_2_id, Message.receiver_id == user_1_id),
                )
            )
            .order_by(Message.created_at.asc())
        )
        messages = list(result.scalars().all())
        first = Participant(user_1_id, await self._db.get(User, user_1_id), now)
        second = Participant(user_2_id, await self._db.get(User, user_2_id), now)
        return first, second, messages

    # ------------------------------------------------------------------
    # CSV export
    # ------------------------------------------------------------------

    async def export_csv(
        self,
        search: str | None = None,
        role: str | None = None,
        activity: str | None = None,
        sort: str | None = None,
        direction: str | None = None,
    ) -> str:
        """Every conversation matching the filters, one CSV row each."""
        rows, _ = await self._rows(search, role, activity, sort, direction, utcnow())
        frame = pd.DataFrame(
            [
                {
                    "Participant 1": row.user_1.name,
                    "Participant 1 Email": row.user_1.email,
                    "Participant 1 Role": row.user_1.role_label if not row.user_1.deleted else "",
                    "Participant 2": row.user_2.name,
                    "Participant 2 Email": row.user_2.email,
                    "Participant 2 Role": row.user_2.role_label if not row.user_2.deleted else "",
                    "Messages": row.total_messages,
                    "First Message": row.first_message_at.strftime("%Y-%m-%d %H:%M"),
                    "Last Message": row.last_message_at.strftime("%Y-%m-%d %H:%M"),
                    "Activity": row.activity_level,
                    "Duration": row.duration_text,
                }
                for row in rows
            ],
            columns=[
                "Participant 1", "Participant 1 Email", "Participant 1 Role",
                "Participant 2", "Participant 2 Email", "Participant 2 Role",
                "Messages", "First Message", "Last Message", "Activity", "Duration",
            ],
        )
        buffer = io.StringIO()
        frame.to_csv(buffer, index=False)
        logger.info("Exported %d conversations", len(rows))
        return buffer.getvalue()
