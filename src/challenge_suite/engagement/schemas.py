"""Pydantic models for votes and favorites."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from challenge_suite.challenges.schemas import ChallengeSummary
from challenge_suite.schemas import ApiModel
from challenge_suite.submissions.schemas import SubmissionResponse


class VoteRequest(ApiModel):
    submission_id: int


class FavoriteRequest(ApiModel):
    """Exactly one of the two targets must be set."""

    submission_id: int | None = None
    challenge_id: int | None = None


class ToggleResponse(ApiModel):
    message: str
    action: Literal["added", "removed"]


class VoteResponse(ApiModel):
    id: int
    submission: SubmissionResponse
    created_at: datetime


class VoteListResponse(ApiModel):
    votes: list[VoteResponse]


class FavoriteResponse(ApiModel):
    id: int
    submission: SubmissionResponse | None = None
    challenge: ChallengeSummary | None = None
    created_at: datetime


class FavoriteListResponse(ApiModel):
    favorites: list[FavoriteResponse]
