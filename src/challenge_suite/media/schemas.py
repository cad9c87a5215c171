"""Pydantic models for media uploads."""

from __future__ import annotations

from challenge_suite.schemas import ApiModel


class UploadResponse(ApiModel):
    message: str
    url: str
    public_id: str
    width: int | None = None
    height: int | None = None
    format: str | None = None
