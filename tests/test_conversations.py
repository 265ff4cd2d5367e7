"""
Admin conversation helpers and metrics.
"""

from datetime import UTC, datetime, timedelta

import pytest

from conftest import admin_login, make_company, make_user
from expolink.core.config import settings
from expolink.models import Message
from expolink.services.company_service import CompanyService
from expolink.services.conversation_service import (
    ConversationService,
    Participant,
    activity_level,
    activity_threshold,
    duration_text,
    humanize_since,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


async def messages_between(db, a, b, count: int, ago: timedelta) -> None:
    for i in range(count):
        sender, receiver = (a, b) if i % 2 == 0 else (b, a)
        db.add(Message(
            sender_id=sender.id,
            receiver_id=receiver.id,
            body=f"hello {i}",
            created_at=NOW - ago + timedelta(seconds=i),
        ))
    await db.commit()


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "hours, level",
    [
        (0, "very-high"),
        (1, "high"),
        (5, "high"),
        (6, "medium"),
        (23, "medium"),
        (24, "low"),
        (167, "low"),
        (168, "inactive"),
        (2000, "inactive"),
    ],
)
def test_activity_level(hours, level):
    assert activity_level(hours) == level


def test_duration_text():
    assert duration_text(0) == "Today"
    assert duration_text(1) == "1 day"
    assert duration_text(12) == "12 days"


def test_humanize_since():
    assert humanize_since(timedelta(seconds=30)) == "just now"
    assert humanize_since(timedelta(minutes=1)) == "1 minute ago"
    assert humanize_since(timedelta(hours=2, minutes=5)) == "2 hours ago"
    assert humanize_since(timedelta(days=8)) == "1 week ago"
    assert humanize_since(timedelta(days=400)) == "1 year ago"


def test_activity_threshold_periods():
    assert activity_threshold(None, NOW) is None
    assert activity_threshold("all", NOW) is None
    assert activity_threshold("week", NOW) == NOW - timedelta(days=7)
    assert activity_threshold("quarter", NOW) == NOW - timedelta(days=91)
    assert activity_threshold("today", NOW) == datetime(2026, 10, 18, tzinfo=UTC)


def test_today_starts_at_local_midnight(monkeypatch):
    monkeypatch.setattr(settings, "APP_TIMEZONE", "America/New_York")
    # 03:00 UTC is still Oct 17 in New York (EDT, UTC-4)
    now = datetime(2026, 10, 18, 3, 0, tzinfo=UTC)
    assert activity_threshold("today", now) == datetime(2026, 10, 17, 4, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_participant_cards(db):
    company = await make_company(db, "Orbit Labs")
    exhibitor = await make_user(
        db, role="exhibitor", company=company, last_active_at=NOW - timedelta(minutes=10)
    )
    visitor = await make_user(db, last_active_at=NOW - timedelta(hours=2))

    card = Participant(exhibitor.id, exhibitor, NOW)
    assert card.company == "Orbit Labs"
    assert card.role_label == "Exhibitor"
    assert card.is_online is True
    assert card.avatar_url.startswith("https://www.gravatar.com/avatar/")

    card = Participant(visitor.id, visitor, NOW)
    assert card.company == "Independent"
    assert card.role_label == "Visitor"
    assert card.is_online is False

    gone = Participant(visitor.id, None, NOW)
    assert gone.deleted is True
    assert gone.name == "Deleted User"
    assert gone.company == "Independent"
    assert gone.avatar_url is None
    assert gone.is_online is False


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_conversation_metrics(db):
    a = await make_user(db)
    b = await make_user(db)
    c = await make_user(db)
    d = await make_user(db)
    await messages_between(db, a, b, 3, ago=timedelta(minutes=10))
    await messages_between(db, a, c, 4, ago=timedelta(days=3))
    await messages_between(db, d, c, 1, ago=timedelta(days=2))

    metrics = await ConversationService(db).metrics(now=NOW)
    assert metrics.total_conversations == 3
    assert metrics.total_messages == 8
    assert metrics.active_conversations == 1
    assert metrics.avg_messages == 2.7


@pytest.mark.asyncio
async def test_conversation_metrics_empty(db):
    metrics = await ConversationService(db).metrics(now=NOW)
    assert metrics.total_conversations == 0
    assert metrics.avg_messages == 0.0


@pytest.mark.asyncio
async def test_exhibitor_metrics(client, db):
    await make_company(db, "One", is_featured=True)
    await make_company(db, "Two")
    await make_company(db, "Three", is_active=False)

    metrics = await CompanyService(db).metrics()
    assert (metrics.total, metrics.active, metrics.featured) == (3, 2, 1)

    admin = await make_user(db, role="admin")
    await admin_login(client, admin)
    resp = await client.get("/admin/companies")
    assert '<div class="value">3</div><div class="label">Total exhibitors</div>' in resp.text
    assert '<div class="value">2</div><div class="label">Active</div>' in resp.text
