"""
Public disk storage.

Uploaded files land under STORAGE_ROOT/<YYYY>/<MM>/<DD>/ and are served
by the /storage static mount. Paths persisted in the DB are relative to
STORAGE_ROOT; values starting with http are external URLs.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath

from fastapi import HTTPException, UploadFile, status

from expolink.core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}
ALLOWED_IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".webp"}


def is_external(path: str | None) -> bool:
    return bool(path) and path.startswith("http")


def public_url(path: str | None) -> str | None:
    """Absolute URL for a stored file; external URLs are returned unchanged."""
    if not path:
        return None
    if is_external(path):
        return path
    return f"{settings.APP_URL.rstrip('/')}/storage/{path}"


def _absolute(path: str) -> Path:
    return Path(settings.STORAGE_ROOT) / PurePosixPath(path)


async def store_image(upload: UploadFile, field: str = "avatar") -> str:
    """
    Validate and store an uploaded image.

    - jpeg/png/jpg/webp only
    - at most AVATAR_MAX_BYTES

    Returns the relative path (e.g. 2026/10/18/<uuid>.png).
    Raises 422 with the field name when validation fails.
    """
    extension = Path(upload.filename or "").suffix.lower()
    content_type = (upload.content_type or "").lower()

    if content_type not in ALLOWED_IMAGE_TYPES or extension not in ALLOWED_IMAGE_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "code": "INVALID_IMAGE",
                "field": field,
                "message": f"The {field} must be a file of type: jpeg, png, jpg, webp.",
            },
        )

    content = await upload.read()
    if len(content) > settings.AVATAR_MAX_BYTES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "code": "IMAGE_TOO_LARGE",
                "field": field,
                "message": f"The {field} may not be greater than {settings.AVATAR_MAX_BYTES // 1024} kilobytes.",
            },
        )
    if not content:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": "INVALID_IMAGE", "field": field, "message": f"The {field} is empty."},
        )

    directory = datetime.now(UTC).strftime("%Y/%m/%d")
    relative = f"{directory}/{uuid.uuid4().hex}{ALLOWED_IMAGE_TYPES[content_type]}"
    target = _absolute(relative)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)
    logger.info("Stored upload %s (%d bytes)", relative, len(content))
    return relative


def delete_local(path: str | None) -> bool:
    """Delete a previously stored file. External URLs and missing files are ignored."""
    if not path or is_external(path):
        return False
    target = _absolute(path)
    if not target.is_file():
        return False
    target.unlink()
    logger.info("Deleted stored file %s", path)
    return True
