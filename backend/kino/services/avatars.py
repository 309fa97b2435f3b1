from __future__ import annotations

import logging
import uuid
from pathlib import Path

from fastapi import HTTPException

from kino.core.config import settings

logger = logging.getLogger(__name__)

AVATAR_URL_PREFIX = "/avatars"

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def avatar_dir() -> Path:
    path = Path(settings.AVATAR_UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def normalize_content_type(raw: str | None) -> str:
    content_type = (raw or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported image type: {content_type or 'unknown'}")
    return content_type


def enforce_max_avatar_bytes(size_bytes: int) -> None:
    if size_bytes > settings.MAX_AVATAR_BYTES:
        max_mb = settings.MAX_AVATAR_BYTES / (1024 * 1024)
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Max allowed size is {max_mb:.1f} MB.",
        )


def store_avatar(user_id: str, content_type: str, data: bytes) -> str:
    """
    Writes the image under AVATAR_UPLOAD_DIR and returns the public relative URL.
    """
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    enforce_max_avatar_bytes(len(data))

    ext = ALLOWED_CONTENT_TYPES[normalize_content_type(content_type)]
    filename = f"{user_id}-{uuid.uuid4().hex}.{ext}"
    (avatar_dir() / filename).write_bytes(data)

    logger.info("Stored avatar: user_id=%s file=%s bytes=%s", user_id, filename, len(data))
    return f"{AVATAR_URL_PREFIX}/{filename}"


def delete_stored_avatar(avatar_url: str | None, user_id: str) -> None:
    """
    Best-effort removal of a file previously uploaded by user_id.
    External URLs and files stored for other accounts are left alone.
    """
    if not avatar_url or not avatar_url.startswith(f"{AVATAR_URL_PREFIX}/"):
        return
    name = avatar_url[len(AVATAR_URL_PREFIX) + 1:]
    if "/" in name or name.startswith(".") or not name.startswith(f"{user_id}-"):
        return
    try:
        (avatar_dir() / name).unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove old avatar file=%s", name)
