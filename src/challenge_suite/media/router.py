"""Media upload endpoint."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, File, Form, UploadFile

from challenge_suite.auth.dependencies import get_current_user
from challenge_suite.config import get_settings
from challenge_suite.db.models import User
from challenge_suite.media.schemas import UploadResponse
from challenge_suite.media.service import max_bytes_for, resource_type_for, upload_media, validate_upload

router = APIRouter(prefix="/api/v1", tags=["Media"])


@router.post("/upload", response_model=UploadResponse)
async def upload(
    file: UploadFile = File(...),  # noqa: B008
    kind: str = Form("image", alias="type"),
    _user: User = Depends(get_current_user),  # noqa: B008
) -> UploadResponse:
    """Upload an image (10MB max) or a video (50MB max) to the media host."""
    settings = get_settings()
    resource_type = resource_type_for(kind)
    if file.size is not None:
        validate_upload(file.content_type, file.size, resource_type, settings)

    # Never hold more than one byte past the cap in memory
    data = await file.read(max_bytes_for(resource_type, settings) + 1)
    validate_upload(file.content_type, len(data), resource_type, settings)
    result = await upload_media(data, file.content_type or "", resource_type, settings)
    return UploadResponse(message="File uploaded successfully", **asdict(result))
