"""
Authentication flow tests.

Covers:
- Registration (visitor / exhibitor rules, avatar, badge prefix, duplicates)
- Password login and disabled accounts
- Token refresh rotation and logout revocation
- Password reset through the Redis token
- Social login (new account, existing account, rejected token)
"""

import pytest

from conftest import PASSWORD, PNG_BYTES, auth_headers, make_company, make_user, unique_email
from expolink.services.social_auth_service import SocialAuthError, SocialProfile, get_social_auth_service
from expolink.main import app


def register_form(role: str = "visitor", **overrides) -> dict:
    form = {
        "name": "Grace",
        "last_name": "Hopper",
        "email": unique_email("reg"),
        "password": PASSWORD,
        "password_confirmation": PASSWORD,
        "phone": "+212600000000",
        "country": "Morocco",
        "city": "Casablanca",
        "company_sector": "Technology",
        "job_title": "Engineer",
        "role": role,
    }
    if role == "visitor":
        form["company_name"] = "Navy Labs"
    form.update(overrides)
    return form


AVATAR = {"avatar": ("me.png", PNG_BYTES, "image/png")}


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_visitor(client):
    form = register_form()
    resp = await client.post("/api/v1/auth/register", data=form, files=AVATAR)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["message"] == "User registered successfully"
    assert body["token_type"] == "Bearer"
    assert body["access_token"] and body["refresh_token"]

    user = body["user"]
    assert user["email"] == form["email"]
    assert user["role"] == "visitor"
    assert user["company_name"] == "Navy Labs"
    assert user["company_id"] is None
    assert user["badge_code"].startswith("VIS-")
    assert len(user["badge_code"]) == 10
    assert user["avatar_url"].startswith("http://testserver/storage/")


@pytest.mark.asyncio
async def test_register_exhibitor_links_company(client, db):
    company = await make_company(db, "Booth Co")
    form = register_form("exhibitor", company_id=str(company.id), company_name="ignored")
    resp = await client.post("/api/v1/auth/register", data=form, files=AVATAR)
    assert resp.status_code == 201, resp.text
    user = resp.json()["user"]
    assert user["role"] == "exhibitor"
    assert user["company_id"] == str(company.id)
    assert user["company_name"] == "Booth Co"
    assert user["badge_code"].startswith("EXH-")


@pytest.mark.asyncio
async def test_register_exhibitor_requires_company(client):
    resp = await client.post("/api/v1/auth/register", data=register_form("exhibitor"), files=AVATAR)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_register_exhibitor_unknown_company(client):
    form = register_form("exhibitor", company_id="00000000-0000-0000-0000-000000000001")
    resp = await client.post("/api/v1/auth/register", data=form, files=AVATAR)
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "INVALID_COMPANY"


@pytest.mark.asyncio
async def test_register_visitor_requires_company_name(client):
    form = register_form()
    form.pop("company_name")
    resp = await client.post("/api/v1/auth/register", data=form, files=AVATAR)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_register_password_confirmation_mismatch(client):
    form = register_form(password_confirmation="different123")
    resp = await client.post("/api/v1/auth/register", data=form, files=AVATAR)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_register_duplicate_email(client, db):
    existing = await make_user(db)
    resp = await client.post(
        "/api/v1/auth/register", data=register_form(email=existing.email), files=AVATAR
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "EMAIL_TAKEN"


@pytest.mark.asyncio
async def test_register_rejects_non_image_avatar(client):
    resp = await client.post(
        "/api/v1/auth/register",
        data=register_form(),
        files={"avatar": ("notes.txt", b"hello", "text/plain")},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["field"] == "avatar"


@pytest.mark.asyncio
async def test_register_requires_avatar(client):
    resp = await client.post("/api/v1/auth/register", data=register_form())
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Login / me
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_and_me(client, db):
    user = await make_user(db)
    resp = await client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["message"] == "Login successful"

    me = await client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["data"]["id"] == str(user.id)
    assert me.json()["data"]["role"] == "visitor"


@pytest.mark.asyncio
async def test_login_wrong_password(client, db):
    user = await make_user(db)
    resp = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == {"code": "INVALID_CREDENTIALS", "message": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_disabled_account(client, db):
    user = await make_user(db, is_active=False)
    resp = await client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "ACCOUNT_DISABLED"


@pytest.mark.asyncio
async def test_me_requires_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "MISSING_TOKEN"


# ---------------------------------------------------------------------------
# Refresh / logout
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_refresh_rotates_token(client, db):
    user = await make_user(db)
    login = await client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    old_refresh = login.json()["refresh_token"]

    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert resp.status_code == 200
    assert resp.json()["refresh_token"] != old_refresh

    reused = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert reused.status_code == 401
    assert reused.json()["detail"]["code"] == "TOKEN_REVOKED"


@pytest.mark.asyncio
async def test_logout_revokes_tokens(client, db):
    user = await make_user(db)
    login = (await client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})).json()
    headers = {"Authorization": f"Bearer {login['access_token']}"}

    resp = await client.post(
        "/api/v1/auth/logout", json={"refresh_token": login["refresh_token"]}, headers=headers
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Logged out successfully"

    me = await client.get("/api/v1/auth/me", headers=headers)
    assert me.status_code == 401
    assert me.json()["detail"]["code"] == "TOKEN_REVOKED"

    refresh = await client.post("/api/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert refresh.status_code == 401


@pytest.mark.asyncio
async def test_logout_without_body(client, db):
    user = await make_user(db)
    resp = await client.post("/api/v1/auth/logout", headers=auth_headers(user))
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_password_reset_flow(client, db, queued):
    user = await make_user(db)

    resp = await client.post("/api/v1/auth/forgot-password", json={"email": user.email})
    assert resp.status_code == 200
    assert resp.json()["message"] == "We have emailed your password reset link."
    assert len(queued["email"]) == 1
    token = queued["email"][0]["reset_token"]
    assert queued["email"][0]["to_email"] == user.email

    resp = await client.post(
        "/api/v1/auth/reset-password",
        json={
            "token": token,
            "email": user.email,
            "password": "brand-new-secret",
            "password_confirmation": "brand-new-secret",
        },
    )
    assert resp.status_code == 200, resp.text

    login = await client.post(
        "/api/v1/auth/login", json={"email": user.email, "password": "brand-new-secret"}
    )
    assert login.status_code == 200

    # Single use
    again = await client.post(
        "/api/v1/auth/reset-password",
        json={
            "token": token,
            "email": user.email,
            "password": "another-secret",
            "password_confirmation": "another-secret",
        },
    )
    assert again.status_code == 400
    assert again.json()["detail"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_forgot_password_unknown_email(client, queued):
    resp = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})
    assert resp.status_code == 400
    assert queued["email"] == []


@pytest.mark.asyncio
async def test_reset_password_email_mismatch(client, db, queued):
    user = await make_user(db)
    await client.post("/api/v1/auth/forgot-password", json={"email": user.email})
    token = queued["email"][0]["reset_token"]

    resp = await client.post(
        "/api/v1/auth/reset-password",
        json={
            "token": token,
            "email": "someone-else@example.com",
            "password": "brand-new-secret",
            "password_confirmation": "brand-new-secret",
        },
    )
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Social login
# ---------------------------------------------------------------------------

class FakeVerifier:
    def __init__(self, profile: SocialProfile | None = None, error: Exception | None = None) -> None:
        self.profile = profile
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def fetch_profile(self, provider: str, token: str) -> SocialProfile:
        self.calls.append((provider, token))
        if self.error is not None:
            raise self.error
        return self.profile


@pytest.fixture
def verifier():
    fake = FakeVerifier()
    app.dependency_overrides[get_social_auth_service] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_social_auth_service, None)


@pytest.mark.asyncio
async def test_social_login_creates_visitor(client, verifier):
    email = unique_email("social")
    verifier.profile = SocialProfile(
        provider="google",
        provider_id="g-123",
        email=email,
        name="Katherine Coleman Johnson",
        avatar="https://lh3.googleusercontent.com/photo.jpg",
    )
    resp = await client.post("/api/v1/auth/social-login", json={"provider": "google", "token": "tok"})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["is_new_user"] is True
    user = body["user"]
    assert user["name"] == "Katherine"
    assert user["last_name"] == "Coleman Johnson"
    assert user["role"] == "visitor"
    assert user["phone"] == "N/A"
    assert user["badge_code"].startswith("VIS-")
    assert user["avatar_url"] == "https://lh3.googleusercontent.com/photo.jpg"
    assert verifier.calls == [("google", "tok")]


@pytest.mark.asyncio
async def test_social_login_existing_user(client, db, verifier):
    user = await make_user(db)
    verifier.profile = SocialProfile(
        provider="facebook",
        provider_id="fb-1",
        email=user.email,
        name="Someone Else",
        avatar="https://graph.facebook.com/pic.jpg",
    )
    resp = await client.post("/api/v1/auth/social-login", json={"provider": "facebook", "token": "tok"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["is_new_user"] is False
    assert body["user"]["id"] == str(user.id)
    assert body["user"]["name"] == "Ada"
    # Empty avatar is filled from the provider
    assert body["user"]["avatar_url"] == "https://graph.facebook.com/pic.jpg"


@pytest.mark.asyncio
async def test_social_login_invalid_token(client, verifier):
    verifier.error = SocialAuthError("token expired")
    resp = await client.post("/api/v1/auth/social-login", json={"provider": "apple", "token": "bad"})
    assert resp.status_code == 401
    detail = resp.json()["detail"]
    assert detail["code"] == "INVALID_SOCIAL_TOKEN"
    assert detail["message"] == "Invalid or expired token."


@pytest.mark.asyncio
async def test_social_login_unknown_provider(client, verifier):
    resp = await client.post("/api/v1/auth/social-login", json={"provider": "myspace", "token": "x"})
    assert resp.status_code == 422
