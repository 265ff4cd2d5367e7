"""
Authentication business logic.

Handles registration, login (password and social), token refresh, logout
and password reset. Routers only handle HTTP concerns.
"""

from __future__ import annotations

import logging
from uuid import UUID

import httpx
import redis.asyncio as aioredis
from fastapi import HTTPException, UploadFile, status
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.config import settings
from expolink.core.security import (
    blacklist_redis_key,
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    password_reset_redis_key,
    random_password,
    refresh_token_redis_key,
    verify_password,
)
from expolink.core.storage import store_image
from expolink.models.role import RoleSlug
from expolink.models.user import User
from expolink.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    SocialLoginRequest,
    SocialLoginResponse,
    TokenResponse,
    UserResponse,
)
from expolink.services.social_auth_service import (
    SocialAuthError,
    SocialAuthService,
    SocialProfile,
)
from expolink.services.user_service import UserService

logger = logging.getLogger(__name__)

# Placeholder for profile fields a social provider cannot supply
SOCIAL_PLACEHOLDER = "N/A"


def split_full_name(full_name: str | None, fallback: str | None = None) -> tuple[str, str]:
    """'Ada King Lovelace' → ('Ada', 'King Lovelace'); empty → fallback or 'User'."""
    source = (full_name or "").strip() or (fallback or "").strip() or "User"
    first, _, rest = source.partition(" ")
    return first, rest.strip()


class AuthService:
    """Handles all authentication operations."""

    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis
        self.users = UserService(db)

    # -----------------------------------------------------------------------
    # Register
    # -----------------------------------------------------------------------

    async def register(self, data: RegisterRequest, avatar: UploadFile) -> AuthResponse:
        """
        Register a new attendee.

        - Validates email uniqueness and the exhibitor's company
        - Stores the avatar on the public disk
        - Allocates a unique badge code for the role
        - Assigns the role (visitor when the role row is missing)
        - Issues JWT tokens
        """
        if await self.users.get_by_email(data.email) is not None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={
                    "code": "EMAIL_TAKEN",
                    "field": "email",
                    "message": "The email has already been taken.",
                },
            )

        is_exhibitor = data.role == RoleSlug.exhibitor.value
        if is_exhibitor:
            await self.users.ensure_company_exists(data.company_id)

        avatar_path = await store_image(avatar, field="avatar")

        user = User(
            name=data.name,
            last_name=data.last_name,
            email=data.email.lower(),
            password_hash=hash_password(data.password),
            job_title=data.job_title,
            phone=data.phone,
            country=data.country,
            city=data.city,
            company_sector=data.company_sector,
            avatar=avatar_path,
            badge_code=await self.users.allocate_badge_code(data.role),
            is_visible=True,
            company_id=data.company_id if is_exhibitor else None,
            company_name=None if is_exhibitor else data.company_name,
        )
        role = await self.users.resolve_role(data.role)
        user.roles = [role] if role is not None else []
        self.db.add(user)
        await self.users.reload(user)

        logger.info("Registered user %s as %s (%s)", user.id, user.role_slug, user.badge_code)
        return await self._auth_response(user, message="User registered successfully")

    # -----------------------------------------------------------------------
    # Login
    # -----------------------------------------------------------------------

    async def login(self, data: LoginRequest) -> AuthResponse:
        """
        Authenticate user with email + password.

        Raises 401 for invalid credentials (never reveals which field is wrong).
        """
        user = await self.users.get_by_email(data.email)

        if user is None or not verify_password(data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "INVALID_CREDENTIALS", "message": "Invalid credentials"},
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "ACCOUNT_DISABLED", "message": "Account is disabled"},
            )

        return await self._auth_response(user, message="Login successful")

    async def admin_login(self, email: str, password: str) -> str:
        """
        Credentials check for the back-office.

        Returns an access token for the session cookie. Non-admins get 403.
        """
        user = await self.users.get_by_email(email)
        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "INVALID_CREDENTIALS", "message": "Invalid credentials"},
            )
        if not user.has_role(RoleSlug.admin.value):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "INSUFFICIENT_ROLE", "message": "Administrator access required"},
            )
        logger.info("Admin %s signed in to the back-office", user.id)
        return create_access_token(str(user.id))

    # -----------------------------------------------------------------------
    # Social login
    # -----------------------------------------------------------------------

    async def social_login(
        self,
        data: SocialLoginRequest,
        verifier: SocialAuthService,
    ) -> SocialLoginResponse:
        """
        Sign in (or sign up) with a provider token.

        New accounts are visitors with placeholder profile fields until
        the attendee completes the profile.
        """
        try:
            profile = await verifier.fetch_profile(data.provider, data.token)
        except (SocialAuthError, httpx.HTTPError, JWTError, KeyError, ValueError) as exc:
            logger.warning("Social login via %s rejected: %s", data.provider, exc)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={
                    "code": "INVALID_SOCIAL_TOKEN",
                    "message": "Invalid or expired token.",
                    "error": str(exc),
                },
            )

        user = await self.users.get_by_email(profile.email)
        is_new_user = user is None

        if user is None:
            user = await self._create_social_user(profile, data.name)
        else:
            if not user.avatar and profile.avatar:
                user.avatar = profile.avatar
            if user.oauth_provider is None:
                user.oauth_provider = profile.provider
                user.oauth_id = profile.provider_id
            await self.users.reload(user)

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "ACCOUNT_DISABLED", "message": "Account is disabled"},
            )

        base = await self._auth_response(user, message="Login successful")
        return SocialLoginResponse(**base.model_dump(exclude={"user"}), user=base.user, is_new_user=is_new_user)

    async def _create_social_user(self, profile: SocialProfile, requested_name: str | None) -> User:
        first_name, last_name = split_full_name(profile.name, fallback=requested_name)
        user = User(
            name=first_name,
            last_name=last_name,
            email=profile.email,
            password_hash=hash_password(random_password()),
            avatar=profile.avatar,
            badge_code=await self.users.allocate_badge_code(RoleSlug.visitor.value),
            is_visible=True,
            phone=SOCIAL_PLACEHOLDER,
            country=SOCIAL_PLACEHOLDER,
            city=SOCIAL_PLACEHOLDER,
            company_sector=SOCIAL_PLACEHOLDER,
            oauth_provider=profile.provider,
            oauth_id=profile.provider_id,
        )
        role = await self.users.get_role(RoleSlug.visitor.value)
        user.roles = [role] if role is not None else []
        self.db.add(user)
        await self.users.reload(user)
        logger.info("Created user %s from %s login", user.id, profile.provider)
        return user

    # -----------------------------------------------------------------------
    # Refresh
    # -----------------------------------------------------------------------

    async def refresh(self, refresh_token: str) -> TokenResponse:
        """
        Exchange a valid refresh token for a new token pair.

        - Validates refresh token JWT
        - Checks token exists in Redis
        - Rotates: deletes old refresh token, issues new pair
        """
        try:
            payload = decode_refresh_token(refresh_token)
        except JWTError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "INVALID_TOKEN", "message": "Refresh token is invalid or expired"},
            )

        user_id: str = payload.get("sub", "")
        jti: str = payload.get("jti", "")

        redis_key = refresh_token_redis_key(user_id, jti)
        if not await self.redis.exists(redis_key):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "TOKEN_REVOKED", "message": "Refresh token has been revoked"},
            )

        user = await self.db.get(User, UUID(user_id))
        if user is None or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "USER_NOT_FOUND", "message": "User not found or inactive"},
            )

        # Rotate: delete old refresh token
        await self.redis.delete(redis_key)
        return await self._issue_tokens(user)

    # -----------------------------------------------------------------------
    # Logout
    # -----------------------------------------------------------------------

    async def logout(self, access_token_jti: str, refresh_token: str | None = None) -> None:
        """
        Logout user by:
        - Blacklisting the access token JTI
        - Deleting the refresh token from Redis (when supplied)
        """
        await self.redis.setex(
            blacklist_redis_key(access_token_jti),
            settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "1",
        )

        if not refresh_token:
            return
        try:
            payload = decode_refresh_token(refresh_token)
        except JWTError:
            # Already expired or malformed; nothing left to revoke
            return
        await self.redis.delete(refresh_token_redis_key(payload.get("sub", ""), payload.get("jti", "")))

    # -----------------------------------------------------------------------
    # Forgot Password
    # -----------------------------------------------------------------------

    async def forgot_password(self, email: str) -> None:
        """
        Start the password reset flow.

        Unknown emails are reported as 400. Otherwise a single-use token is
        stored in Redis and the reset email is queued on Celery.
        """
        user = await self.users.get_by_email(email)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "USER_NOT_FOUND", "message": "We can't find a user with that email address."},
            )

        token = create_password_reset_token()
        await self.redis.setex(
            password_reset_redis_key(token),
            settings.PASSWORD_RESET_EXPIRE_SECONDS,
            str(user.id),
        )

        from expolink.workers.email_tasks import send_password_reset_email
        send_password_reset_email.delay(
            to_email=user.email,
            reset_token=token,
            frontend_url=settings.FRONTEND_URL,
        )
        logger.info("Password reset requested for user %s", user.id)

    # -----------------------------------------------------------------------
    # Reset Password
    # -----------------------------------------------------------------------

    async def reset_password(self, token: str, email: str, new_password: str) -> None:
        """
        Complete password reset.

        The token must exist in Redis and belong to the given email.
        """
        redis_key = password_reset_redis_key(token)
        user_id_str = await self.redis.get(redis_key)
        if user_id_str is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_TOKEN", "message": "This password reset token is invalid."},
            )

        user = await self.db.get(User, UUID(user_id_str))
        if user is None or user.email != email.lower():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_TOKEN", "message": "This password reset token is invalid."},
            )

        user.password_hash = hash_password(new_password)
        await self.db.flush()

        # Single use
        await self.redis.delete(redis_key)
        logger.info("Password reset completed for user %s", user.id)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _auth_response(self, user: User, message: str) -> AuthResponse:
        tokens = await self._issue_tokens(user)
        return AuthResponse(
            message=message,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user=UserResponse.from_user(user),
        )

    async def _issue_tokens(self, user: User) -> TokenResponse:
        """
        Create and store access + refresh token pair for a user.

        Stores refresh token JTI in Redis with TTL.
        """
        user_id = str(user.id)

        refresh_token, refresh_jti = create_refresh_token(user_id)
        access_token = create_access_token(user_id)

        ttl_seconds = settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
        await self.redis.setex(
            refresh_token_redis_key(user_id, refresh_jti),
            ttl_seconds,
            "1",
        )

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
