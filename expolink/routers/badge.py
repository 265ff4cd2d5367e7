"""
Badge endpoint.

GET /badge — the signed-in attendee's printable badge (PDF with QR code)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from expolink.core.dependencies import get_current_user
from expolink.models.user import User
from expolink.services.badge_service import BadgeService, badge_filename

router = APIRouter()


def get_badge_service() -> BadgeService:
    return BadgeService()


@router.get(
    "/badge",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
    summary="Download the attendee badge",
)
async def download_badge(
    current_user: User = Depends(get_current_user),
    service: BadgeService = Depends(get_badge_service),
) -> Response:
    # CPU bound
    pdf = await run_in_threadpool(service.render, current_user)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{badge_filename(current_user)}"'},
    )
