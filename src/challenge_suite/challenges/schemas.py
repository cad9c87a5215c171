"""Pydantic models for challenges."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import AfterValidator, Field, HttpUrl, StringConstraints, model_validator

from challenge_suite.schemas import ApiModel, Pagination
from challenge_suite.users.schemas import UserSummary

Category = Literal["Fitness", "Creative", "Learning", "Lifestyle", "Other"]
BadgeKind = Literal["Prize", "Normal"]
ChallengeStatus = Literal["active", "upcoming", "ended"]

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=1000)]


def as_naive_utc(value: datetime) -> datetime:
    """Aware values are converted to UTC and stripped; naive values are taken as UTC already."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def as_utc(value: datetime) -> datetime:
    """Naive input is read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class ChallengeCreate(ApiModel):
    title: Title
    description: Description
    category: Category
    image: HttpUrl
    video_url: HttpUrl | None = None
    badge: BadgeKind = "Normal"
    start_date: UtcDatetime
    end_date: UtcDatetime
    max_participants: int | None = Field(default=None, ge=1)
    rules: list[str] = []

    @model_validator(mode="after")
    def check_dates(self) -> ChallengeCreate:
        if self.end_date < self.start_date:
            msg = "endDate must not be before startDate"
            raise ValueError(msg)
        return self


class ChallengeUpdate(ApiModel):
    """Partial update; only the fields sent are changed."""

    title: Title | None = None
    description: Description | None = None
    category: Category | None = None
    image: HttpUrl | None = None
    video_url: HttpUrl | None = None
    badge: BadgeKind | None = None
    status: ChallengeStatus | None = None
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    max_participants: int | None = Field(default=None, ge=1)
    rules: list[str] | None = None


class ChallengeResponse(ApiModel):
    id: int
    title: str
    description: str
    category: str
    image: str
    video_url: str = ""
    badge: str
    status: str
    start_date: datetime
    end_date: datetime
    participants: int
    max_participants: int | None = None
    rules: list[str] = []
    created_by: UserSummary = Field(validation_alias="creator")
    created_at: datetime


class ChallengeEnvelope(ApiModel):
    message: str | None = None
    challenge: ChallengeResponse


class ChallengeListResponse(ApiModel):
    challenges: list[ChallengeResponse]
    pagination: Pagination


class ChallengeSummary(ApiModel):
    """The challenge block embedded in submissions, favorites and votes."""

    id: int
    title: str
    image: str
    badge: str
    category: str
    status: str
