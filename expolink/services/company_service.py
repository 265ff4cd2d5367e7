"""
Company (exhibitor) business logic.

Public directory for the mobile app plus the admin exhibitor screen:
metrics, filtered / sorted listing, CRUD and CSV import.
"""

from __future__ import annotations

import io
import logging
import uuid
from dataclasses import dataclass

import pandas as pd
from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.config import settings
from expolink.models.company import Company
from expolink.schemas.company import CompanyForm, CompanyListResponse, CompanyResponse
from expolink.services.pagination import Page, clamp_page

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Name", "Email", "Booth Number", "Category", "Country", "Website"]
CSV_EXAMPLE_ROW = ["Acme Corp", "contact@acme.com", "A-12", "Technology", "Morocco", "https://acme.com"]

FILTERABLE = ("name", "booth_number", "country")
DEFAULT_SORT = "-created_at"


@dataclass
class CompanyMetrics:
    total: int
    active: int
    featured: int


def parse_sort(sort: str | None) -> tuple[str, bool]:
    """'-name' → ('name', descending). Unknown columns fall back to -created_at."""
    sort = sort or DEFAULT_SORT
    descending = sort.startswith("-")
    column = sort.lstrip("-")
    if column not in Company.SORTABLE:
        return DEFAULT_SORT.lstrip("-"), True
    return column, descending


def _cell(row: list[str], index: int) -> str | None:
    value = row[index].strip() if index < len(row) else ""
    return value or None


class CompanyService:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Public directory
    # ------------------------------------------------------------------

    async def list_public(
        self,
        search: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> CompanyListResponse:
        """Active companies, featured first, then by name."""
        stmt = select(Company).where(Company.is_active.is_(True))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Company.name.ilike(pattern),
                    Company.booth_number.ilike(pattern),
                    Company.category.ilike(pattern),
                )
            )

        total = await self._db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        result = await self._db.execute(
            stmt.order_by(Company.is_featured.desc(), Company.name.asc()).offset(skip).limit(limit)
        )
        return CompanyListResponse(
            data=[CompanyResponse.from_company(c) for c in result.scalars().all()],
            total=total,
        )

    async def get_public(self, company_id: uuid.UUID) -> CompanyResponse:
        company = await self._db.get(Company, company_id)
        if company is None or not company.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "COMPANY_NOT_FOUND", "message": "Company not found."},
            )
        return CompanyResponse.from_company(company)

    # ------------------------------------------------------------------
    # Admin: metrics + listing
    # ------------------------------------------------------------------

    async def metrics(self) -> CompanyMetrics:
        total = await self._db.scalar(select(func.count(Company.id))) or 0
        active = await self._db.scalar(
            select(func.count(Company.id)).where(Company.is_active.is_(True))
        ) or 0
        featured = await self._db.scalar(
            select(func.count(Company.id)).where(Company.is_featured.is_(True))
        ) or 0
        return CompanyMetrics(total=total, active=active, featured=featured)

    async def paginate(
        self,
        filters: dict[str, str | None],
        sort: str | None = None,
        page: int | None = 1,
    ) -> Page[Company]:
        """Case-insensitive substring filters, one sortable column, fixed page size."""
        stmt = select(Company)
        for column in FILTERABLE:
            value = (filters.get(column) or "").strip()
            if value:
                stmt = stmt.where(getattr(Company, column).ilike(f"%{value}%"))

        column, descending = parse_sort(sort)
        order = getattr(Company, column)
        stmt = stmt.order_by(order.desc() if descending else order.asc(), Company.id)

        page = clamp_page(page)
        per_page = settings.ADMIN_PAGE_SIZE
        total = await self._db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        result = await self._db.execute(stmt.offset((page - 1) * per_page).limit(per_page))
        return Page(items=list(result.scalars().all()), total=total, page=page, per_page=per_page)

    # ------------------------------------------------------------------
    # Admin: CRUD
    # ------------------------------------------------------------------

    async def get_or_404(self, company_id: uuid.UUID) -> Company:
        company = await self._db.get(Company, company_id)
        if company is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "COMPANY_NOT_FOUND", "message": "Company not found."},
            )
        return company

    async def save(self, form: CompanyForm, company: Company | None = None) -> Company:
        """Create a company, or update the given one."""
        if company is None:
            company = Company(name=form.name)
            self._db.add(company)
        for key, value in form.model_dump().items():
            setattr(company, key, value)
        await self._db.flush()
        logger.info("Saved company %s (%s)", company.id, company.name)
        return company

    async def delete(self, company_id: uuid.UUID) -> None:
        company = await self.get_or_404(company_id)
        await self._db.delete(company)
        await self._db.flush()
        logger.info("Deleted company %s", company_id)

    # ------------------------------------------------------------------
    # Admin: CSV
    # ------------------------------------------------------------------

    @staticmethod
    def csv_template() -> str:
        return pd.DataFrame([CSV_EXAMPLE_ROW], columns=CSV_COLUMNS).to_csv(index=False)

    async def import_csv(self, content: bytes) -> int:
        """
        Upsert companies from a CSV export.

        Columns by position: Name, Email, Booth Number, Category, Country,
        Website. The header row is skipped, rows without a name are skipped,
        rows are matched on email and every imported company is active.
        """
        try:
            frame = pd.read_csv(
                io.BytesIO(content),
                header=None,
                names=list(range(len(CSV_COLUMNS))),
                index_col=False,
                on_bad_lines="skip",
                skiprows=1,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8-sig",
            )
        except pd.errors.EmptyDataError:
            return 0

        count = 0
        for raw in frame.fillna("").itertuples(index=False):
            row = [str(value) for value in raw]
            name = _cell(row, 0)
            if not name:
                continue

            email = _cell(row, 1)
            company = None
            if email:
                company = await self._db.scalar(select(Company).where(Company.email == email))
            if company is None:
                company = Company(name=name, email=email)
                self._db.add(company)

            company.name = name
            company.booth_number = _cell(row, 2)
            company.category = _cell(row, 3)
            company.country = _cell(row, 4)
            company.website_url = _cell(row, 5)
            company.is_active = True
            await self._db.flush()
            count += 1

        logger.info("Imported %d companies from CSV", count)
        return count
