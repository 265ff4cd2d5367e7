"""
Admin back-office (server-rendered HTML).

/admin/login                         — sign in (sets the session cookie)
/admin/companies                     — exhibitors: metrics, filters, sort, CSV import
/admin/conversations                 — conversations: metrics, filters, sort, CSV export
/admin/conversations/{user1}/{user2} — one conversation

Every page except the login form requires a user holding the admin role.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import urlencode
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.config import settings
from expolink.core.database import get_db
from expolink.core.dependencies import get_admin_user, get_redis
from expolink.core.security import blacklist_redis_key, decode_access_token
from expolink.core.storage import public_url
from expolink.models.user import User
from expolink.schemas.company import CompanyForm
from expolink.services.auth_service import AuthService
from expolink.services.company_service import CompanyService, parse_sort
from expolink.services.conversation_service import ConversationService

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.globals["public_url"] = public_url


def get_company_service(db: AsyncSession = Depends(get_db)) -> CompanyService:
    return CompanyService(db=db)


def get_conversation_service(db: AsyncSession = Depends(get_db)) -> ConversationService:
    return ConversationService(db=db)


def _redirect(url: str, flash: str | None = None) -> RedirectResponse:
    if flash:
        url = f"{url}?{urlencode({'flash': flash})}"
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def _page_url(request: Request):
    def build(page: int) -> str:
        return str(request.url.include_query_params(page=page))
    return build


def _render(request: Request, template: str, context: dict[str, Any], status_code: int = 200) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        template,
        {"flash": request.query_params.get("flash"), "page_url": _page_url(request), **context},
        status_code=status_code,
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@router.get("", include_in_schema=False)
async def admin_home() -> RedirectResponse:
    return _redirect("/admin/companies")


@router.get("/login", response_class=HTMLResponse, include_in_schema=False)
async def login_form(request: Request) -> HTMLResponse:
    return _render(request, "admin/login.html", {"error": None, "email": ""})


@router.post("/login", include_in_schema=False)
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> Response:
    try:
        token = await AuthService(db=db, redis=redis).admin_login(email, password)
    except HTTPException as exc:
        return _render(
            request,
            "admin/login.html",
            {"error": exc.detail["message"], "email": email},
            status_code=exc.status_code,
        )

    response = _redirect("/admin/companies")
    response.set_cookie(
        settings.ADMIN_COOKIE_NAME,
        token,
        max_age=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )
    return response


@router.post("/logout", include_in_schema=False)
async def logout(
    request: Request,
    redis: aioredis.Redis = Depends(get_redis),
) -> RedirectResponse:
    token = request.cookies.get(settings.ADMIN_COOKIE_NAME)
    if token:
        try:
            jti = decode_access_token(token).get("jti", "")
        except JWTError:
            jti = ""
        if jti:
            await redis.setex(blacklist_redis_key(jti), settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60, "1")

    response = _redirect("/admin/login")
    response.delete_cookie(settings.ADMIN_COOKIE_NAME)
    return response


# ---------------------------------------------------------------------------
# Exhibitors
# ---------------------------------------------------------------------------

@router.get("/companies", response_class=HTMLResponse, include_in_schema=False)
async def company_list(
    request: Request,
    name: str | None = Query(default=None, alias="filter[name]"),
    booth_number: str | None = Query(default=None, alias="filter[booth_number]"),
    country: str | None = Query(default=None, alias="filter[country]"),
    sort: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    admin: User = Depends(get_admin_user),
    service: CompanyService = Depends(get_company_service),
) -> HTMLResponse:
    filters = {"name": name, "booth_number": booth_number, "country": country}
    sort_column, descending = parse_sort(sort)

    def sort_url(column: str) -> str:
        # Clicking the active column flips its direction
        value = column if (column == sort_column and descending) else f"-{column}"
        return str(request.url.include_query_params(sort=value, page=1))

    return _render(
        request,
        "admin/companies/index.html",
        {
            "admin": admin,
            "metrics": await service.metrics(),
            "page": await service.paginate(filters, sort=sort, page=page),
            "filters": filters,
            "sort_column": sort_column,
            "descending": descending,
            "sort_url": sort_url,
        },
    )


@router.get("/companies/template.csv", include_in_schema=False)
async def company_csv_template(admin: User = Depends(get_admin_user)) -> Response:
    return Response(
        content=CompanyService.csv_template(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="exhibitors_template.csv"'},
    )


@router.post("/companies/import", include_in_schema=False)
async def company_csv_import(
    csv_file: UploadFile = File(...),
    admin: User = Depends(get_admin_user),
    service: CompanyService = Depends(get_company_service),
) -> RedirectResponse:
    count = await service.import_csv(await csv_file.read())
    return _redirect("/admin/companies", flash=f"Successfully processed {count} companies.")


def _company_form(
    name: str = Form(default=""),
    email: str = Form(default=""),
    booth_number: str = Form(default=""),
    category: str = Form(default=""),
    country: str = Form(default=""),
    website_url: str = Form(default=""),
    phone: str = Form(default=""),
    address: str = Form(default=""),
    description: str = Form(default=""),
    is_active: bool = Form(default=False),
    is_featured: bool = Form(default=False),
) -> dict[str, Any]:
    return {
        "name": name,
        "email": email,
        "booth_number": booth_number,
        "category": category,
        "country": country,
        "website_url": website_url,
        "phone": phone,
        "address": address,
        "description": description,
        "is_active": is_active,
        "is_featured": is_featured,
    }


@router.get("/companies/create", response_class=HTMLResponse, include_in_schema=False)
async def company_create_form(request: Request, admin: User = Depends(get_admin_user)) -> HTMLResponse:
    return _render(
        request,
        "admin/companies/form.html",
        {"admin": admin, "company": None, "values": {"is_active": True}, "errors": []},
    )


@router.post("/companies/create", include_in_schema=False)
async def company_create(
    request: Request,
    values: dict[str, Any] = Depends(_company_form),
    admin: User = Depends(get_admin_user),
    service: CompanyService = Depends(get_company_service),
) -> Response:
    try:
        form = CompanyForm(**values)
    except ValidationError as exc:
        return _render(
            request,
            "admin/companies/form.html",
            {"admin": admin, "company": None, "values": values, "errors": exc.errors()},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    await service.save(form)
    return _redirect("/admin/companies", flash="Exhibitor saved.")


@router.get("/companies/{company_id}/edit", response_class=HTMLResponse, include_in_schema=False)
async def company_edit_form(
    request: Request,
    company_id: UUID,
    admin: User = Depends(get_admin_user),
    service: CompanyService = Depends(get_company_service),
) -> HTMLResponse:
    company = await service.get_or_404(company_id)
    values = {key: getattr(company, key) for key in CompanyForm.model_fields}
    return _render(
        request,
        "admin/companies/form.html",
        {"admin": admin, "company": company, "values": values, "errors": []},
    )


@router.post("/companies/{company_id}/edit", include_in_schema=False)
async def company_update(
    request: Request,
    company_id: UUID,
    values: dict[str, Any] = Depends(_company_form),
    admin: User = Depends(get_admin_user),
    service: CompanyService = Depends(get_company_service),
) -> Response:
    company = await service.get_or_404(company_id)
    try:
        form = CompanyForm(**values)
    except ValidationError as exc:
        return _render(
            request,
            "admin/companies/form.html",
            {"admin": admin, "company": company, "values": values, "errors": exc.errors()},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    await service.save(form, company)
    return _redirect("/admin/companies", flash="Exhibitor saved.")


@router.post("/companies/{company_id}/delete", include_in_schema=False)
async def company_delete(
    company_id: UUID,
    admin: User = Depends(get_admin_user),
    service: CompanyService = Depends(get_company_service),
) -> RedirectResponse:
    await service.delete(company_id)
    return _redirect("/admin/companies", flash="Exhibitor deleted.")


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------

@router.get("/conversations", response_class=HTMLResponse, include_in_schema=False)
async def conversation_list(
    request: Request,
    search: str | None = Query(default=None),
    role: str | None = Query(default=None),
    activity: str | None = Query(default=None),
    sort: str = Query(default="last_message_at", pattern="^(last_message_at|total_messages)$"),
    direction: str = Query(default="desc", pattern="^(asc|desc)$"),
    page: int = Query(default=1, ge=1),
    admin: User = Depends(get_admin_user),
    service: ConversationService = Depends(get_conversation_service),
) -> HTMLResponse:
    def sort_url(column: str) -> str:
        flipped = "asc" if (column == sort and direction == "desc") else "desc"
        return str(request.url.include_query_params(sort=column, direction=flipped, page=1))

    return _render(
        request,
        "admin/conversations/index.html",
        {
            "admin": admin,
            "metrics": await service.metrics(),
            "page": await service.paginate(
                search=search, role=role, activity=activity,
                sort=sort, direction=direction, page=page,
            ),
            "search": search or "",
            "role": role or "all",
            "activity": activity or "all",
            "sort": sort,
            "direction": direction,
            "sort_url": sort_url,
            "export_url": str(request.url.replace(path="/admin/conversations/export.csv").remove_query_params("page")),
        },
    )


@router.get("/conversations/export.csv", include_in_schema=False)
async def conversation_export(
    search: str | None = Query(default=None),
    role: str | None = Query(default=None),
    activity: str | None = Query(default=None),
    sort: str = Query(default="last_message_at", pattern="^(last_message_at|total_messages)$"),
    direction: str = Query(default="desc", pattern="^(asc|desc)$"),
    admin: User = Depends(get_admin_user),
    service: ConversationService = Depends(get_conversation_service),
) -> Response:
    content = await service.export_csv(
        search=search, role=role, activity=activity, sort=sort, direction=direction
    )
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="conversations.csv"'},
    )


@router.get("/conversations/{user1}/{user2}", response_class=HTMLResponse, include_in_schema=False)
async def conversation_view(
    request: Request,
    user1: UUID,
    user2: UUID,
    admin: User = Depends(get_admin_user),
    service: ConversationService = Depends(get_conversation_service),
) -> HTMLResponse:
    first, second, messages = await service.thread(user1, user2)
    if not messages:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "CONVERSATION_NOT_FOUND", "message": "Conversation not found."},
        )
    return _render(
        request,
        "admin/conversations/show.html",
        {"admin": admin, "first": first, "second": second, "messages": messages},
    )
