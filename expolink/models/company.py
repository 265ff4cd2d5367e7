"""
Company (exhibitor) ORM model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expolink.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from expolink.models.user import User


class Company(Base, UUIDMixin, TimestampMixin):
    """A participating company and its booth."""

    __tablename__ = "companies"

    # Columns the admin list may be sorted by
    SORTABLE = (
        "name",
        "booth_number",
        "category",
        "country",
        "is_active",
        "is_featured",
        "created_at",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    logo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    booth_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    map_coordinates: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    website_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    team: Mapped[list[User]] = relationship("User", back_populates="company", lazy="select")

    @property
    def initial(self) -> str:
        return self.name[:1].upper() if self.name else "?"

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name!r}>"
