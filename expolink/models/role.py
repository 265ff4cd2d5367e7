"""
Role ORM models.

Roles are rows (admin / exhibitor / visitor) attached to users through
the role_users join table.
"""

from __future__ import annotations

import enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from expolink.models.base import Base, TimestampMixin, UUIDMixin


class RoleSlug(str, enum.Enum):
    """Well-known role slugs."""

    admin = "admin"
    exhibitor = "exhibitor"
    visitor = "visitor"


class Role(Base, UUIDMixin, TimestampMixin):
    """A named set of permissions."""

    __tablename__ = "roles"

    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    permissions: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Role slug={self.slug!r}>"


class RoleUser(Base):
    """Join table linking users to roles."""

    __tablename__ = "role_users"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role_id: Mapped[UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True
    )

    def __repr__(self) -> str:
        return f"<RoleUser user_id={self.user_id} role_id={self.role_id}>"
