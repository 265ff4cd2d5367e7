"""
Connections and direct messages.
"""

import pytest
from sqlalchemy import select

from conftest import auth_headers, make_user
from expolink.models import AppNotification


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

async def connect(client, requester, target):
    return await client.post(
        "/api/v1/connections", json={"target_id": str(target.id)}, headers=auth_headers(requester)
    )


@pytest.mark.asyncio
async def test_connection_request_notifies_in_app_only(client, db, queued):
    requester = await make_user(db, name="Linus", last_name="Torvalds")
    target = await make_user(db, fcm_token="device")

    resp = await connect(client, requester, target)
    assert resp.status_code == 201, resp.text
    assert resp.json()["status"] == "pending"

    feed = (await db.execute(
        select(AppNotification).where(AppNotification.user_id == target.id)
    )).scalars().all()
    assert len(feed) == 1
    assert feed[0].title == "New Connection Request 👥"
    assert feed[0].body == "Linus Torvalds wants to connect with you."
    assert feed[0].data == {
        "screen": "/networking",
        "arg": "requests_tab",
        "click_action": "FLUTTER_NOTIFICATION_CLICK",
    }
    assert queued["push"] == []


@pytest.mark.asyncio
async def test_duplicate_connection_either_direction(client, db):
    a = await make_user(db)
    b = await make_user(db)
    assert (await connect(client, a, b)).status_code == 201

    again = await connect(client, a, b)
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "CONNECTION_EXISTS"

    reverse = await connect(client, b, a)
    assert reverse.status_code == 409


@pytest.mark.asyncio
async def test_cannot_connect_to_self(client, db):
    a = await make_user(db)
    resp = await connect(client, a, a)
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "SELF_CONNECTION"


@pytest.mark.asyncio
async def test_only_target_can_answer(client, db):
    a = await make_user(db)
    b = await make_user(db)
    connection = (await connect(client, a, b)).json()
    url = f"/api/v1/connections/{connection['id']}"

    resp = await client.patch(url, json={"status": "accepted"}, headers=auth_headers(a))
    assert resp.status_code == 403

    resp = await client.patch(url, json={"status": "accepted"}, headers=auth_headers(b))
    assert resp.status_code == 200
    assert resp.json()["status"] == "accepted"

    resp = await client.patch(url, json={"status": "declined"}, headers=auth_headers(b))
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "ALREADY_ANSWERED"


@pytest.mark.asyncio
async def test_list_connections_by_status(client, db):
    me = await make_user(db)
    a = await make_user(db)
    b = await make_user(db)
    first = (await connect(client, me, a)).json()
    await connect(client, b, me)
    await client.patch(
        f"/api/v1/connections/{first['id']}", json={"status": "accepted"}, headers=auth_headers(a)
    )

    everything = await client.get("/api/v1/connections", headers=auth_headers(me))
    assert everything.json()["total"] == 2

    accepted = await client.get(
        "/api/v1/connections", params={"status": "accepted"}, headers=auth_headers(me)
    )
    assert [c["id"] for c in accepted.json()["data"]] == [first["id"]]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

async def send(client, sender, receiver, body: str) -> dict:
    resp = await client.post(
        "/api/v1/messages",
        json={"receiver_id": str(receiver.id), "body": body},
        headers=auth_headers(sender),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_thread_marks_received_messages_read(client, db):
    me = await make_user(db)
    other = await make_user(db)
    await send(client, other, me, "Hi there")
    await send(client, me, other, "Hello!")
    await send(client, other, me, "Meet at booth A-12?")

    resp = await client.get(f"/api/v1/messages/with/{other.id}", headers=auth_headers(me))
    assert resp.status_code == 200
    thread = resp.json()
    assert thread["total"] == 3
    assert [m["body"] for m in thread["data"]] == ["Hi there", "Hello!", "Meet at booth A-12?"]
    # Received messages come back already marked; my own reply stays unread
    assert [m["read_at"] is not None for m in thread["data"]] == [True, False, True]

    conversations = await client.get("/api/v1/messages/conversations", headers=auth_headers(me))
    entry = conversations.json()["data"][0]
    assert entry["unread_count"] == 0

    # The other side has not read my reply yet
    theirs = await client.get("/api/v1/messages/conversations", headers=auth_headers(other))
    assert theirs.json()["data"][0]["unread_count"] == 1


@pytest.mark.asyncio
async def test_conversations_most_recent_first(client, db):
    me = await make_user(db)
    old_friend = await make_user(db, name="Old")
    new_friend = await make_user(db, name="New")
    await send(client, old_friend, me, "first")
    await send(client, me, old_friend, "second")
    await send(client, new_friend, me, "latest")

    resp = await client.get("/api/v1/messages/conversations", headers=auth_headers(me))
    data = resp.json()["data"]
    assert [entry["user"]["name"] for entry in data] == ["New", "Old"]
    assert data[0]["last_message"]["body"] == "latest"
    assert data[0]["unread_count"] == 1
    assert data[1]["message_count"] == 2
    assert data[1]["last_message"]["body"] == "second"
    assert data[1]["unread_count"] == 1


@pytest.mark.asyncio
async def test_cannot_message_self(client, db):
    me = await make_user(db)
    resp = await client.post(
        "/api/v1/messages", json={"receiver_id": str(me.id), "body": "echo"}, headers=auth_headers(me)
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "SELF_MESSAGE"
