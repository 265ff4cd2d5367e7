"""
Authentication and profile schemas.

Request/response models for all auth endpoints including social login.
Multipart endpoints (register, complete-profile) bind these models with
Form(); the avatar file travels as a separate UploadFile parameter.
"""

from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from expolink.core.storage import public_url
from expolink.models.user import User

AttendeeRole = Literal["visitor", "exhibitor"]
SocialProvider = Literal["google", "facebook", "apple"]
SupportedLocale = Literal["en", "fr", "ar"]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ---------------------------------------------------------------------------
# Profile fields shared by register and complete-profile
# ---------------------------------------------------------------------------

class AttendeeProfileForm(BaseModel):
    """Profile fields and the visitor / exhibitor company rules."""

    name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=100)
    city: str = Field(min_length=1, max_length=100)
    company_sector: str = Field(min_length=1, max_length=100)
    job_title: str | None = Field(default=None, max_length=100)
    role: AttendeeRole

    # Exhibitors pick a company row, visitors type a company name
    company_id: UUID | None = None
    company_name: str | None = Field(default=None, max_length=255)

    @field_validator("job_title", "company_id", "company_name", mode="before")
    @classmethod
    def empty_strings_are_missing(cls, v: object) -> object:
        return _blank_to_none(v)

    @model_validator(mode="after")
    def company_matches_role(self) -> AttendeeProfileForm:
        if self.role == "exhibitor" and self.company_id is None:
            raise ValueError("The company id field is required when role is exhibitor.")
        if self.role == "visitor" and not self.company_name:
            raise ValueError("The company name field is required when role is visitor.")
        return self


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

class RegisterRequest(AttendeeProfileForm):
    """Form body for POST /auth/register."""

    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=6, max_length=128)
    password_confirmation: str

    @model_validator(mode="after")
    def password_confirmed(self) -> RegisterRequest:
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match.")
        return self


class CompleteProfileRequest(AttendeeProfileForm):
    """Form body for POST /auth/complete-profile."""


# ---------------------------------------------------------------------------
# Login / tokens
# ---------------------------------------------------------------------------

class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    """Request body for POST /auth/refresh."""

    refresh_token: str


class LogoutRequest(BaseModel):
    """Request body for POST /auth/logout."""

    refresh_token: str | None = None


class TokenResponse(BaseModel):
    """Response for token refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(description="Access token TTL in seconds")


# ---------------------------------------------------------------------------
# Password Reset
# ---------------------------------------------------------------------------

class ForgotPasswordRequest(BaseModel):
    """Request body for POST /auth/forgot-password."""

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Request body for POST /auth/reset-password."""

    token: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    password_confirmation: str

    @model_validator(mode="after")
    def password_confirmed(self) -> ResetPasswordRequest:
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match.")
        return self


# ---------------------------------------------------------------------------
# Social login
# ---------------------------------------------------------------------------

class SocialLoginRequest(BaseModel):
    """Request body for POST /auth/social-login (mobile sends the provider token)."""

    provider: SocialProvider
    token: str = Field(min_length=1)
    # Apple may hide the name; the client forwards what it collected
    name: str | None = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Small profile updates
# ---------------------------------------------------------------------------

class LocaleUpdateRequest(BaseModel):
    """Request body for PATCH /auth/locale."""

    locale: SupportedLocale


class FcmTokenRequest(BaseModel):
    """Request body for PUT /auth/fcm-token."""

    fcm_token: str = Field(min_length=1, max_length=500)


# ---------------------------------------------------------------------------
# User (response object embedded in other responses)
# ---------------------------------------------------------------------------

class UserResponse(BaseModel):
    """Public user representation returned in API responses."""

    id: UUID
    name: str
    last_name: str
    email: str
    phone: str | None
    country: str | None
    city: str | None
    company_sector: str | None
    is_visible: bool
    about_me: str | None
    job_title: str | None
    job_function: str | None
    badge_code: str
    avatar_url: str | None
    locale: str
    role: str
    company_id: UUID | None
    company_name: str | None
    created_at: str | None

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        """Build the response from a user whose company and roles are loaded."""
        return cls(
            id=user.id,
            name=user.name,
            last_name=user.last_name,
            email=user.email,
            phone=user.phone,
            country=user.country,
            city=user.city,
            company_sector=user.company_sector,
            is_visible=bool(user.is_visible),
            about_me=user.about_me,
            job_title=user.job_title,
            job_function=user.job_function,
            badge_code=user.badge_code,
            avatar_url=public_url(user.avatar),
            locale=user.locale or "en",
            role=user.role_slug,
            company_id=user.company_id,
            company_name=user.display_company_name,
            created_at=user.created_at.strftime("%Y-%m-%d %H:%M") if user.created_at else None,
        )


class UserSummaryResponse(BaseModel):
    """Compact user info embedded in appointment, message and connection responses."""

    id: UUID
    name: str
    last_name: str
    avatar_url: str | None
    job_title: str | None
    company_name: str | None
    role: str

    @classmethod
    def from_user(cls, user: User) -> UserSummaryResponse:
        return cls(
            id=user.id,
            name=user.name,
            last_name=user.last_name,
            avatar_url=public_url(user.avatar),
            job_title=user.job_title,
            company_name=user.display_company_name,
            role=user.role_slug,
        )


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------

class AuthResponse(BaseModel):
    """Response for register, login and social login."""

    message: str | None = None
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserResponse


class SocialLoginResponse(AuthResponse):
    is_new_user: bool = Field(description="True if this is a newly created account")


class UserEnvelope(BaseModel):
    """Response carrying a message and the updated user."""

    message: str
    user: UserResponse


class MeResponse(BaseModel):
    """Response for GET /auth/me."""

    data: UserResponse


class MessageResponse(BaseModel):
    message: str


class StatsResponse(BaseModel):
    """Response for GET /auth/stats."""

    connections: int
    meetings: int
