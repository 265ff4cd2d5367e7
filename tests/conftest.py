"""
Pytest configuration for ExpoLink backend tests.

The app runs in-process over httpx's ASGI transport against an in-memory
SQLite database and an in-memory Redis stand-in. Celery tasks are never
sent to a broker: their .delay() calls are recorded instead.
"""

import os
import tempfile
import uuid
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="expolink-tests-"))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-expolink-suite-0123456789")
os.environ["STORAGE_ROOT"] = str(_TMP / "public")
os.environ["BADGE_TEMPLATE_PATH"] = str(_TMP / "missing-template.pdf")
os.environ["APP_URL"] = "http://testserver"
os.environ["APP_TIMEZONE"] = "UTC"

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from expolink.core.database import get_db
from expolink.core.dependencies import get_redis
from expolink.core.security import create_access_token, hash_password
from expolink.main import app
from expolink.models import Base, Company, User
from expolink.services.user_service import UserService

PASSWORD = "password123"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeRedis:
    """The handful of Redis commands the app uses, kept in a dict."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: str, nx: bool = False, ex: int | None = None) -> bool | None:
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        return True

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if key in self.store)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    """Session for arranging data and calling services directly."""
    async with session_factory() as session:
        await UserService(session).seed_roles()
        await session.commit()
        yield session


@pytest.fixture
def redis():
    return FakeRedis()


@pytest.fixture(autouse=True)
def queued(monkeypatch):
    """Record Celery .delay() calls instead of publishing them."""
    from expolink.workers import email_tasks, notification_tasks

    calls: dict[str, list[dict]] = {"email": [], "push": []}
    monkeypatch.setattr(
        email_tasks.send_password_reset_email, "delay", lambda **kwargs: calls["email"].append(kwargs)
    )
    monkeypatch.setattr(
        notification_tasks.send_push_notification, "delay", lambda **kwargs: calls["push"].append(kwargs)
    )
    return calls


@pytest.fixture
async def client(db, session_factory, redis):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_redis():
        return redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------

def unique_email(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


async def make_company(db: AsyncSession, name: str = "Acme Corp", **fields) -> Company:
    company = Company(name=name, is_active=fields.pop("is_active", True), **fields)
    db.add(company)
    await db.commit()
    return company


async def make_user(
    db: AsyncSession,
    role: str = "visitor",
    email: str | None = None,
    company: Company | None = None,
    **fields,
) -> User:
    users = UserService(db)
    user = User(
        name=fields.pop("name", "Ada"),
        last_name=fields.pop("last_name", "Lovelace"),
        email=email or unique_email(role),
        password_hash=hash_password(fields.pop("password", PASSWORD)),
        badge_code=await users.allocate_badge_code(role),
        company_id=company.id if company else None,
        company_name=fields.pop("company_name", None if company else "Analytical Engines"),
        **fields,
    )
    db.add(user)
    await users.sync_role(user, role)
    await users.reload(user)
    await db.commit()
    return user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}


async def admin_login(client: httpx.AsyncClient, admin: User) -> None:
    resp = await client.post(
        "/admin/login",
        data={"email": admin.email, "password": PASSWORD},
        follow_redirects=False,
    )
    assert resp.status_code == 303, resp.text
