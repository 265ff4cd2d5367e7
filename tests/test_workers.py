"""
Background tasks, beat schedule and operator commands.
"""

import pytest
from sqlalchemy import select

from conftest import PASSWORD, make_user
from expolink.cli import build_parser
from expolink.core.config import settings
from expolink.core.security import verify_password
from expolink.models import User
from expolink.services.user_service import UserService
from expolink.workers.celery_app import celery_app
from expolink.workers.notification_tasks import build_message, clear_stale_token


def test_push_message_shape():
    message = build_message("device-1", "Hello", "World", {"screen": "/b2b_detail", "arg": 42})
    assert message.token == "device-1"
    assert message.notification.title == "Hello"
    assert message.data == {"screen": "/b2b_detail", "arg": "42"}
    assert message.android.priority == "high"
    assert message.android.notification.click_action == "FLUTTER_NOTIFICATION_CLICK"


@pytest.mark.asyncio
async def test_clear_stale_token(db, session_factory, monkeypatch):
    import expolink.core.database as database

    monkeypatch.setattr(database, "AsyncSessionLocal", session_factory)
    holder = await make_user(db, fcm_token="dead-token")
    bystander = await make_user(db, fcm_token="live-token")

    assert await clear_stale_token("dead-token") == 1

    tokens = dict((await db.execute(
        select(User.id, User.fcm_token).where(User.id.in_([holder.id, bystander.id]))
    )).all())
    assert tokens == {holder.id: None, bystander.id: "live-token"}


def test_reminder_sweep_is_scheduled():
    entry = celery_app.conf.beat_schedule["send-appointment-reminders"]
    assert entry["task"] == "expolink.workers.reminder_tasks.send_appointment_reminders"
    assert entry["schedule"] == settings.REMINDER_SWEEP_SECONDS


@pytest.mark.asyncio
async def test_create_admin_promotes_existing_user(db):
    user = await make_user(db, email="ops@example.com")
    service = UserService(db)

    admin = await service.create_admin("ops@example.com", "new-password-1", "Ops")
    await db.commit()

    assert admin.id == user.id
    assert admin.has_role("admin")
    # An existing account keeps its password
    assert verify_password(PASSWORD, admin.password_hash)

    # Roles are already seeded by the fixture
    assert await service.seed_roles() == []


def test_cli_parser():
    parser = build_parser()
    args = parser.parse_args(["create-admin", "--email", "a@b.co", "--password", "pw"])
    assert args.command == "create-admin"
    assert args.name == "Admin"

    with pytest.raises(SystemExit):
        parser.parse_args([])
