"""
Profile endpoint tests: complete-profile, avatar, locale, push token, stats.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from conftest import PNG_BYTES, auth_headers, make_company, make_user
from expolink.core.config import settings
from expolink.core.timeutil import utcnow
from expolink.models import Appointment, AppointmentStatus, Connection, ConnectionStatus, User


def profile_form(role: str = "visitor", **overrides) -> dict:
    form = {
        "name": "Alan",
        "last_name": "Turing",
        "phone": "+441234567",
        "country": "UK",
        "city": "Manchester",
        "company_sector": "Research",
        "role": role,
    }
    if role == "visitor":
        form["company_name"] = "Bletchley Park"
    form.update(overrides)
    return form


@pytest.mark.asyncio
async def test_complete_profile_visitor(client, db):
    user = await make_user(db, phone="N/A", country="N/A", city="N/A", company_sector="N/A")
    resp = await client.post(
        "/api/v1/auth/complete-profile", data=profile_form(), headers=auth_headers(user)
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["message"] == "Profile completed successfully"
    assert body["user"]["name"] == "Alan"
    assert body["user"]["city"] == "Manchester"
    assert body["user"]["company_name"] == "Bletchley Park"
    # Prefix already matches: badge is kept
    assert body["user"]["badge_code"] == user.badge_code


@pytest.mark.asyncio
async def test_complete_profile_switch_to_exhibitor(client, db):
    company = await make_company(db, "Enigma Ltd")
    user = await make_user(db)
    assert user.badge_code.startswith("VIS-")

    resp = await client.post(
        "/api/v1/auth/complete-profile",
        data=profile_form("exhibitor", company_id=str(company.id)),
        headers=auth_headers(user),
    )
    assert resp.status_code == 200, resp.text
    updated = resp.json()["user"]
    assert updated["role"] == "exhibitor"
    assert updated["badge_code"].startswith("EXH-")
    assert updated["company_id"] == str(company.id)
    assert updated["company_name"] == "Enigma Ltd"


@pytest.mark.asyncio
async def test_complete_profile_replaces_avatar(client, db):
    user = await make_user(db)
    first = await client.post(
        "/api/v1/auth/avatar",
        files={"avatar": ("a.png", PNG_BYTES, "image/png")},
        headers=auth_headers(user),
    )
    assert first.status_code == 200
    old_url = first.json()["user"]["avatar_url"]
    old_file = settings.STORAGE_ROOT / old_url.split("/storage/", 1)[1]
    assert old_file.is_file()

    resp = await client.post(
        "/api/v1/auth/complete-profile",
        data=profile_form(),
        files={"avatar": ("b.webp", PNG_BYTES, "image/webp")},
        headers=auth_headers(user),
    )
    assert resp.status_code == 200
    new_url = resp.json()["user"]["avatar_url"]
    assert new_url != old_url
    assert new_url.endswith(".webp")
    assert not old_file.exists()


@pytest.mark.asyncio
async def test_update_locale(client, db):
    user = await make_user(db)
    resp = await client.patch("/api/v1/auth/locale", json={"locale": "fr"}, headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json()["user"]["locale"] == "fr"

    bad = await client.patch("/api/v1/auth/locale", json={"locale": "de"}, headers=auth_headers(user))
    assert bad.status_code == 422


@pytest.mark.asyncio
async def test_update_fcm_token(client, db):
    user = await make_user(db)
    resp = await client.put(
        "/api/v1/auth/fcm-token", json={"fcm_token": "device-token-1"}, headers=auth_headers(user)
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Push token saved"

    stored = (await db.execute(select(User.fcm_token).where(User.id == user.id))).scalar_one()
    assert stored == "device-token-1"


@pytest.mark.asyncio
async def test_stats_counts_accepted_and_confirmed(client, db):
    user = await make_user(db)
    peers = [await make_user(db) for _ in range(3)]
    when = utcnow() + timedelta(days=2)

    db.add_all([
        Connection(requester_id=user.id, target_id=peers[0].id, status=ConnectionStatus.accepted),
        Connection(requester_id=peers[1].id, target_id=user.id, status=ConnectionStatus.accepted),
        Connection(requester_id=user.id, target_id=peers[2].id, status=ConnectionStatus.pending),
        Appointment(booker_id=user.id, target_user_id=peers[0].id, scheduled_at=when,
                    status=AppointmentStatus.confirmed),
        Appointment(booker_id=peers[1].id, target_user_id=user.id, scheduled_at=when,
                    status=AppointmentStatus.requested),
    ])
    await db.commit()

    resp = await client.get("/api/v1/auth/stats", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json() == {"connections": 2, "meetings": 1}


@pytest.mark.asyncio
async def test_complete_profile_keeps_job_title_and_makes_visible(client, db):
    user = await make_user(db, job_title="CTO", is_visible=False)
    resp = await client.post(
        "/api/v1/auth/complete-profile", data=profile_form(), headers=auth_headers(user)
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["user"]["job_title"] == "CTO"
    assert resp.json()["user"]["is_visible"] is True

    resp = await client.post(
        "/api/v1/auth/complete-profile",
        data=profile_form(job_title="Chief Scientist"),
        headers=auth_headers(user),
    )
    assert resp.json()["user"]["job_title"] == "Chief Scientist"
