"""
FastAPI application entry point.

Configures logging, middleware, routes, static storage and exception handlers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from expolink.core.config import settings
from expolink.core.dependencies import AdminLoginRequired

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting ExpoLink API in %s mode", settings.ENVIRONMENT)
    yield
    logger.info("Shutting down ExpoLink API")


app = FastAPI(
    title="ExpoLink API",
    description="Trade show networking: attendees, exhibitors, meetings and messaging",
    version="1.0.0",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.exception_handler(AdminLoginRequired)
async def admin_login_required_handler(request: Request, exc: AdminLoginRequired) -> RedirectResponse:
    return RedirectResponse(url="/admin/login", status_code=status.HTTP_303_SEE_OTHER)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.DEBUG:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": str(exc),
                    "type": type(exc).__name__,
                }
            },
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0",
    }


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    return {
        "message": "ExpoLink API",
        "version": "1.0.0",
        "docs": "/api/docs" if settings.DEBUG else "disabled",
    }


# Public disk: avatars and logos
app.mount(
    "/storage",
    StaticFiles(directory=settings.STORAGE_ROOT, check_dir=False),
    name="storage",
)


from expolink.routers import admin, appointments, auth, badge, companies, connections, messages, notifications

app.include_router(auth.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(badge.router, prefix="/api/v1", tags=["Badge"])
app.include_router(companies.router, prefix="/api/v1/companies", tags=["Companies"])
app.include_router(appointments.router, prefix="/api/v1/appointments", tags=["Appointments"])
app.include_router(connections.router, prefix="/api/v1/connections", tags=["Connections"])
app.include_router(messages.router, prefix="/api/v1/messages", tags=["Messages"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["Notifications"])
app.include_router(admin.router, prefix="/admin", include_in_schema=False)
