"""
Public company directory (exhibitor picker for registration).
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.database import get_db
from expolink.schemas.company import CompanyListResponse, CompanyResponse
from expolink.services.company_service import CompanyService

router = APIRouter()


def get_company_service(db: AsyncSession = Depends(get_db)) -> CompanyService:
    return CompanyService(db=db)


@router.get(
    "",
    response_model=CompanyListResponse,
    summary="List active companies",
)
async def list_companies(
    search: str | None = Query(default=None, max_length=200),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    service: CompanyService = Depends(get_company_service),
) -> CompanyListResponse:
    return await service.list_public(search=search, skip=skip, limit=limit)


@router.get(
    "/{company_id}",
    response_model=CompanyResponse,
    summary="Get a company",
)
async def get_company(
    company_id: UUID,
    service: CompanyService = Depends(get_company_service),
) -> CompanyResponse:
    return await service.get_public(company_id)
