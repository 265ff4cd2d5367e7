"""
Pydantic schemas for companies (exhibitors).
"""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from expolink.core.storage import public_url
from expolink.models.company import Company


# ---------------------------------------------------------------------------
# Admin form
# ---------------------------------------------------------------------------

class CompanyForm(BaseModel):
    """Create / edit form of the admin exhibitor screen."""
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr | None = None
    booth_number: str | None = Field(default=None, max_length=50)
    category: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)
    website_url: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    description: str | None = None
    is_active: bool = False
    is_featured: bool = False

    @field_validator(
        "email", "booth_number", "category", "country", "website_url",
        "phone", "address", "description",
        mode="before",
    )
    @classmethod
    def empty_strings_are_missing(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class CompanyResponse(BaseModel):
    id: uuid.UUID
    name: str
    logo_url: str | None
    booth_number: str | None
    map_coordinates: dict[str, Any] | None
    country: str | None
    category: str | None
    email: str | None
    website_url: str | None
    phone: str | None
    address: str | None
    description: str | None
    is_featured: bool

    @classmethod
    def from_company(cls, company: Company) -> CompanyResponse:
        return cls(
            id=company.id,
            name=company.name,
            logo_url=public_url(company.logo),
            booth_number=company.booth_number,
            map_coordinates=company.map_coordinates,
            country=company.country,
            category=company.category,
            email=company.email,
            website_url=company.website_url,
            phone=company.phone,
            address=company.address,
            description=company.description,
            is_featured=bool(company.is_featured),
        )


class CompanyListResponse(BaseModel):
    data: list[CompanyResponse]
    total: int
