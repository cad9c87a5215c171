"""Upload validation and delegation to Cloudinary.

Media are never stored locally: files are checked against the MIME allow-list
and the size cap for their kind, then forwarded to the media host, and only
the resulting URL and metadata are returned.
"""

from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import structlog

from challenge_suite.errors import MediaHostUnavailableError, ValidationFailedError

if TYPE_CHECKING:
    from challenge_suite.config import Settings

logger = structlog.get_logger()

ALLOWED_TYPES: dict[str, tuple[str, ...]] = {
    "image": ("image/jpeg", "image/png", "image/webp", "image/gif"),
    "video": ("video/mp4", "video/webm", "video/quicktime"),
}

IMAGE_TRANSFORMATION = [{"width": 1200, "height": 1200, "crop": "limit", "quality": "auto"}]

_configured = False


@dataclass(frozen=True)
class UploadResult:
    url: str
    public_id: str
    width: int | None
    height: int | None
    format: str | None


def init_media_host(settings: Settings) -> bool:
    """Configure the Cloudinary SDK from settings. Returns whether uploads are possible."""
    global _configured  # noqa: PLW0603
    if settings.cloudinary_url:
        cloudinary.config(cloudinary_url=settings.cloudinary_url, secure=True)
        _configured = True
    elif settings.cloudinary_cloud_name and settings.cloudinary_api_key and settings.cloudinary_api_secret:
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        _configured = True
    else:
        logger.warning("media_host_not_configured")
        _configured = False
    return _configured


def resource_type_for(kind: str | None) -> str:
    """Anything other than ``video`` is treated as an image."""
    return "video" if kind == "video" else "image"


def max_bytes_for(resource_type: str, settings: Settings) -> int:
    return settings.max_image_bytes if resource_type == "image" else settings.max_video_bytes


def validate_upload(content_type: str | None, size: int, resource_type: str, settings: Settings) -> None:
    """Check MIME type and size against the limits for the resource type.

    Raises:
        ValidationFailedError: Disallowed type or file too large.
    """
    allowed = ALLOWED_TYPES[resource_type]
    if content_type not in allowed:
        msg = f"Invalid file type. Allowed: {', '.join(allowed)}"
        raise ValidationFailedError(msg, details=[{"field": "file", "message": msg}])

    max_bytes = max_bytes_for(resource_type, settings)
    if size > max_bytes:
        msg = f"File too large. Max size: {max_bytes // (1024 * 1024)}MB"
        raise ValidationFailedError(msg, details=[{"field": "file", "message": msg}])


async def upload_media(data: bytes, content_type: str, resource_type: str, settings: Settings) -> UploadResult:
    """Send the file to Cloudinary (blocking SDK call, run in a worker thread).

    Raises:
        MediaHostUnavailableError: The host is not configured or rejected the upload.
    """
    if not _configured:
        msg = "Media uploads are not configured"
        raise MediaHostUnavailableError(msg)

    options: dict[str, Any] = {"folder": settings.media_folder, "resource_type": resource_type}
    if resource_type == "image":
        options["transformation"] = IMAGE_TRANSFORMATION
    payload = f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"

    try:
        result = await asyncio.to_thread(cloudinary.uploader.upload, payload, **options)
    except cloudinary.exceptions.Error as e:
        logger.warning("media_upload_failed", resource_type=resource_type, error=str(e))
        msg = "Failed to upload file"
        raise MediaHostUnavailableError(msg) from e

    logger.info("media_uploaded", public_id=result.get("public_id"), resource_type=resource_type, bytes=len(data))
    return UploadResult(
        url=result["secure_url"],
        public_id=result["public_id"],
        width=result.get("width"),
        height=result.get("height"),
        format=result.get("format"),
    )
