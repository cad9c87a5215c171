"""Pydantic models for submissions."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import Field, HttpUrl, StringConstraints

from challenge_suite.challenges.schemas import ChallengeSummary
from challenge_suite.schemas import ApiModel, Pagination
from challenge_suite.users.schemas import UserSummary


class SubmissionCreate(ApiModel):
    challenge_id: int
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=100)]
    description: Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)] = ""
    media_url: HttpUrl
    media_type: Literal["image", "video"]


class SubmissionResponse(ApiModel):
    id: int
    challenge: ChallengeSummary
    user: UserSummary = Field(validation_alias="author")
    title: str
    description: str = ""
    media_url: str
    media_type: str
    votes: int
    status: str
    is_winner: bool
    submitted_at: datetime
    created_at: datetime


class SubmissionEnvelope(ApiModel):
    message: str
    submission: SubmissionResponse


class SubmissionListResponse(ApiModel):
    submissions: list[SubmissionResponse]
    pagination: Pagination
