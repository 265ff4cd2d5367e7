"""
Authentication and profile endpoints.

Register, login, social login, logout, token refresh, password reset, me,
profile completion, avatar, locale, push token and stats.
"""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, Body, Depends, File, Form, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.database import get_db
from expolink.core.dependencies import get_current_user, get_redis, get_token_payload
from expolink.models.user import User
from expolink.schemas.auth import (
    AuthResponse,
    CompleteProfileRequest,
    FcmTokenRequest,
    ForgotPasswordRequest,
    LocaleUpdateRequest,
    LoginRequest,
    LogoutRequest,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SocialLoginRequest,
    SocialLoginResponse,
    StatsResponse,
    TokenResponse,
    UserEnvelope,
    UserResponse,
)
from expolink.services.auth_service import AuthService
from expolink.services.profile_service import ProfileService
from expolink.services.social_auth_service import SocialAuthService, get_social_auth_service

router = APIRouter()


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> AuthService:
    """Dependency that constructs AuthService."""
    return AuthService(db=db, redis=redis)


def get_profile_service(db: AsyncSession = Depends(get_db)) -> ProfileService:
    return ProfileService(db=db)


# ---------------------------------------------------------------------------
# Multipart forms
# ---------------------------------------------------------------------------

def _validated(model: type, **fields: object):
    """Build a form model, reporting failures the same way as JSON bodies."""
    try:
        return model(**fields)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False))


def register_form(
    name: str = Form(...),
    last_name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    password_confirmation: str = Form(...),
    phone: str = Form(...),
    country: str = Form(...),
    city: str = Form(...),
    company_sector: str = Form(...),
    role: str = Form(...),
    job_title: str | None = Form(default=None),
    company_id: str | None = Form(default=None),
    company_name: str | None = Form(default=None),
) -> RegisterRequest:
    return _validated(
        RegisterRequest,
        name=name,
        last_name=last_name,
        email=email,
        password=password,
        password_confirmation=password_confirmation,
        phone=phone,
        country=country,
        city=city,
        company_sector=company_sector,
        role=role,
        job_title=job_title,
        company_id=company_id,
        company_name=company_name,
    )


def complete_profile_form(
    name: str = Form(...),
    last_name: str = Form(...),
    phone: str = Form(...),
    country: str = Form(...),
    city: str = Form(...),
    company_sector: str = Form(...),
    role: str = Form(...),
    job_title: str | None = Form(default=None),
    company_id: str | None = Form(default=None),
    company_name: str | None = Form(default=None),
) -> CompleteProfileRequest:
    return _validated(
        CompleteProfileRequest,
        name=name,
        last_name=last_name,
        phone=phone,
        country=country,
        city=city,
        company_sector=company_sector,
        role=role,
        job_title=job_title,
        company_id=company_id,
        company_name=company_name,
    )


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new attendee",
)
async def register(
    data: RegisterRequest = Depends(register_form),
    avatar: UploadFile = File(...),
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """
    Create a visitor or exhibitor account.

    - Exhibitors must pick an existing company, visitors type a company name
    - Avatar is required (jpeg/png/jpg/webp, max 4 MB)
    - Returns JWT access + refresh tokens on success
    """
    return await service.register(data, avatar)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login with email and password",
)
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return await service.login(data)


@router.post(
    "/social-login",
    response_model=SocialLoginResponse,
    summary="Login with a Google, Facebook or Apple token",
)
async def social_login(
    data: SocialLoginRequest,
    service: AuthService = Depends(get_auth_service),
    verifier: SocialAuthService = Depends(get_social_auth_service),
) -> SocialLoginResponse:
    """
    Verify the provider token and sign the attendee in.

    Unknown emails get a new visitor account (``is_new_user`` is true) that
    should be finished through /complete-profile.
    """
    return await service.social_login(data, verifier)


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------

@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
)
async def refresh(
    data: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Exchange a valid refresh token for a new access + refresh token pair.

    Refresh tokens are rotated on every use.
    """
    return await service.refresh(data.refresh_token)


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------

@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout and revoke tokens",
)
async def logout(
    data: LogoutRequest | None = Body(default=None),
    user_and_payload: tuple[User, dict] = Depends(get_token_payload),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """
    Logout the current user.

    - Blacklists the current access token JTI in Redis
    - Deletes the refresh token from Redis when one is sent
    """
    _, payload = user_and_payload
    await service.logout(
        access_token_jti=payload.get("jti", ""),
        refresh_token=data.refresh_token if data else None,
    )
    return MessageResponse(message="Logged out successfully")


# ---------------------------------------------------------------------------
# Forgot / Reset Password
# ---------------------------------------------------------------------------

@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request a password reset email",
)
async def forgot_password(
    data: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await service.forgot_password(data.email)
    return MessageResponse(message="We have emailed your password reset link.")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset password using token",
)
async def reset_password(
    data: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """
    Complete password reset using the token sent via email.

    Token is single-use and expires after 1 hour.
    """
    await service.reset_password(data.token, data.email, data.password)
    return MessageResponse(message="Your password has been reset.")


# ---------------------------------------------------------------------------
# Me
# ---------------------------------------------------------------------------

@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user profile",
)
async def get_me(current_user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse(data=UserResponse.from_user(current_user))


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

@router.post(
    "/complete-profile",
    response_model=UserEnvelope,
    summary="Complete or update the attendee profile",
)
async def complete_profile(
    data: CompleteProfileRequest = Depends(complete_profile_form),
    avatar: UploadFile | None = File(default=None),
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> UserEnvelope:
    user = await service.complete_profile(current_user, data, avatar)
    return UserEnvelope(message="Profile completed successfully", user=UserResponse.from_user(user))


@router.post(
    "/avatar",
    response_model=UserEnvelope,
    summary="Replace the profile picture",
)
async def upload_avatar(
    avatar: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> UserEnvelope:
    user = await service.update_avatar(current_user, avatar)
    return UserEnvelope(message="Avatar updated successfully", user=UserResponse.from_user(user))


@router.patch(
    "/locale",
    response_model=UserEnvelope,
    summary="Change the notification language",
)
async def update_locale(
    data: LocaleUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> UserEnvelope:
    user = await service.update_locale(current_user, data.locale)
    return UserEnvelope(message="Language updated successfully", user=UserResponse.from_user(user))


@router.put(
    "/fcm-token",
    response_model=MessageResponse,
    summary="Register the device push token",
)
async def update_fcm_token(
    data: FcmTokenRequest,
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> MessageResponse:
    await service.update_fcm_token(current_user, data.fcm_token)
    return MessageResponse(message="Push token saved")


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Connection and meeting counters",
)
async def get_stats(
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> StatsResponse:
    return await service.stats(current_user)
