"""
User ORM model.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expolink.models.base import Base, TimestampMixin, UUIDMixin
from expolink.models.role import RoleSlug

if TYPE_CHECKING:
    from expolink.models.app_notification import AppNotification
    from expolink.models.company import Company
    from expolink.models.role import Role


class User(Base, UUIDMixin, TimestampMixin):
    """An attendee: visitor, exhibitor (attached to a company) or admin."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    company_sector: Mapped[str | None] = mapped_column(String(100), nullable=True)
    job_title: Mapped[str | None] = mapped_column(String(100), nullable=True)
    job_function: Mapped[str | None] = mapped_column(String(100), nullable=True)
    about_me: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relative path on the public disk, or an external URL (social avatars)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)
    badge_code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)
    locale: Mapped[str] = mapped_column(String(5), nullable=False, default="en")
    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    fcm_token: Mapped[str | None] = mapped_column(String(500), nullable=True)
    last_active_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Exhibitors point at a company row, visitors type their company name
    company_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # OAuth fields
    oauth_provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    oauth_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Relationships
    company: Mapped[Company | None] = relationship(
        "Company", back_populates="team", lazy="selectin"
    )
    roles: Mapped[list[Role]] = relationship(
        "Role", secondary="role_users", lazy="selectin", order_by="Role.created_at"
    )
    app_notifications: Mapped[list[AppNotification]] = relationship(
        "AppNotification", back_populates="user", cascade="all, delete-orphan", lazy="select"
    )

    # --- Derived values ---

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name or ''}".strip()

    @property
    def full_name_with_company(self) -> str:
        if self.company is not None:
            return f"{self.full_name} ({self.company.name})"
        return self.full_name

    @property
    def role_slug(self) -> str:
        """First assigned role; users without roles are visitors."""
        if self.roles:
            return self.roles[0].slug
        return RoleSlug.visitor.value

    @property
    def display_company_name(self) -> str | None:
        """Company table name first, then the free-text entry."""
        if self.company is not None:
            return self.company.name
        return self.company_name

    def has_role(self, slug: str) -> bool:
        return any(role.slug == slug for role in self.roles)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
