"""
In-app notification feed, dispatcher channels and message catalogs.
"""

from datetime import UTC, datetime

import pytest

from conftest import auth_headers, make_user
from expolink.core.i18n import format_meeting_date, translate
from expolink.models import AppNotification, Appointment, AppointmentStatus, NotificationType
from expolink.notifications.appointments import MeetingStatusUpdated
from expolink.notifications.base import DATABASE, Notification
from expolink.notifications.dispatcher import NotificationDispatcher


async def seed_feed(db, user, count: int = 3) -> list[AppNotification]:
    rows = [
        AppNotification(
            user_id=user.id,
            type=NotificationType.info,
            title=f"Notice {i}",
            body="body",
            data={"screen": "/home"},
            created_at=datetime(2026, 10, 1, 12, i, tzinfo=UTC),
        )
        for i in range(count)
    ]
    db.add_all(rows)
    await db.commit()
    return rows


# ---------------------------------------------------------------------------
# Feed endpoints
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_newest_first(client, db):
    user = await make_user(db)
    await seed_feed(db, user)
    other = await make_user(db)
    await seed_feed(db, other, count=1)

    resp = await client.get("/api/v1/notifications", headers=auth_headers(user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 3
    assert body["unread_count"] == 3
    assert [n["title"] for n in body["data"]] == ["Notice 2", "Notice 1", "Notice 0"]
    assert body["data"][0]["type"] == "info"
    assert body["data"][0]["data"] == {"screen": "/home"}


@pytest.mark.asyncio
async def test_mark_one_and_all_read(client, db):
    user = await make_user(db)
    rows = await seed_feed(db, user)

    resp = await client.patch(f"/api/v1/notifications/{rows[0].id}/read", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json()["is_read"] is True

    unread = await client.get("/api/v1/notifications", params={"unread": True}, headers=auth_headers(user))
    assert unread.json()["total"] == 2

    resp = await client.post("/api/v1/notifications/mark-all-read", headers=auth_headers(user))
    assert resp.json() == {"updated": 2}

    after = await client.get("/api/v1/notifications", headers=auth_headers(user))
    assert after.json()["unread_count"] == 0


@pytest.mark.asyncio
async def test_cannot_read_someone_elses_notification(client, db):
    owner = await make_user(db)
    intruder = await make_user(db)
    rows = await seed_feed(db, owner, count=1)

    resp = await client.patch(f"/api/v1/notifications/{rows[0].id}/read", headers=auth_headers(intruder))
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "NOTIFICATION_NOT_FOUND"


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

class SilentNotice(Notification):
    channels = (DATABASE, "carrier-pigeon")

    def to_app(self, notifiable):
        return {"title": "Quiet", "body": None, "type": "alert", "data": None}


@pytest.mark.asyncio
async def test_dispatcher_skips_unknown_channel(db, queued):
    user = await make_user(db, fcm_token="device")
    results = await NotificationDispatcher(db).send(user, SilentNotice())
    assert list(results) == [DATABASE]
    assert isinstance(results[DATABASE], AppNotification)
    assert results[DATABASE].type == NotificationType.alert
    assert queued["push"] == []


@pytest.mark.asyncio
async def test_status_update_falls_back_to_generic_text(db):
    booker = await make_user(db)
    target = await make_user(db)
    appointment = Appointment(
        booker=booker,
        target_user=target,
        scheduled_at=datetime(2026, 10, 20, 14, 30, tzinfo=UTC),
        status=AppointmentStatus.requested,
    )
    payload = MeetingStatusUpdated(appointment, AppointmentStatus.requested).to_app(booker)
    assert payload["title"] == "Meeting Update"
    assert payload["body"] == "Your meeting on Oct 20 at 2:30 PM is now requested."
    assert payload["type"] == "alert"


# ---------------------------------------------------------------------------
# Catalogs
# ---------------------------------------------------------------------------

def test_translate_fallbacks():
    assert translate("meeting_update_title", "fr") == "Mise à jour du rendez-vous"
    # Unsupported locale falls back to English
    assert translate("meeting_update_title", "de") == "Meeting Update"
    # Unknown key comes back unchanged
    assert translate("no_such_key", "en") == "no_such_key"


def test_format_meeting_date():
    when = datetime(2026, 10, 18, 14, 30, tzinfo=UTC)
    assert format_meeting_date(when, "en") == "Oct 18 at 2:30 PM"
    # Naive values are read as UTC
    assert format_meeting_date(when.replace(tzinfo=None), "en") == "Oct 18 at 2:30 PM"
