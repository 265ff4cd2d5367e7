"""
FastAPI dependency injection functions.

Provides Redis connections, current user (bearer or admin cookie) and
role enforcement.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.config import settings
from expolink.core.database import get_db
from expolink.core.security import blacklist_redis_key, decode_access_token
from expolink.core.timeutil import utcnow
from expolink.models.role import RoleSlug
from expolink.models.user import User

# ---------------------------------------------------------------------------
# HTTP Bearer scheme (auto_error=False so we can return custom 401)
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)

# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """
    Return a shared async Redis client.

    Uses a module-level pool so connections are reused across requests.
    """
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            str(settings.REDIS_URL),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_pool


# ---------------------------------------------------------------------------
# Token → user
# ---------------------------------------------------------------------------

async def resolve_token_user(
    token: str,
    db: AsyncSession,
    redis: aioredis.Redis,
) -> tuple[User, dict]:
    """
    Validate an access token and load its user.

    Returns (user, payload). Raises 401 with a machine-readable code.
    """
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "INVALID_TOKEN", "message": "Token is invalid or expired"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: str = payload.get("sub", "")
    jti: str = payload.get("jti", "")

    # Check blacklist
    is_blacklisted = await redis.exists(blacklist_redis_key(jti))
    if is_blacklisted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "TOKEN_REVOKED", "message": "Token has been revoked"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Load user
    result = await db.execute(select(User).where(User.id == UUID(user_id)))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "USER_NOT_FOUND", "message": "User not found or inactive"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user, payload


# ---------------------------------------------------------------------------
# Current user (mobile API)
# ---------------------------------------------------------------------------

async def get_token_payload(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> tuple[User, dict]:
    """Bearer token → (user, decoded payload). Raises 401 if absent or invalid."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "MISSING_TOKEN", "message": "Authorization header required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    user, payload = await resolve_token_user(credentials.credentials, db, redis)
    user.last_active_at = utcnow()
    return user, payload


async def get_current_user(
    user_and_payload: tuple[User, dict] = Depends(get_token_payload),
) -> User:
    """Validate Bearer JWT and return the authenticated User."""
    user, _ = user_and_payload
    return user


# ---------------------------------------------------------------------------
# Admin back-office (token in an HttpOnly cookie)
# ---------------------------------------------------------------------------

class AdminLoginRequired(Exception):
    """Raised when an admin page is requested without a valid admin session."""


async def get_admin_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> User:
    """
    Resolve the admin session cookie.

    Anything other than a valid token belonging to an admin redirects to
    the login page (handled by the AdminLoginRequired exception handler).
    """
    token = request.cookies.get(settings.ADMIN_COOKIE_NAME)
    if not token:
        raise AdminLoginRequired()

    try:
        user, _ = await resolve_token_user(token, db, redis)
    except HTTPException:
        raise AdminLoginRequired()

    if not user.has_role(RoleSlug.admin.value):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "INSUFFICIENT_ROLE", "message": "Administrator access required"},
        )
    return user
