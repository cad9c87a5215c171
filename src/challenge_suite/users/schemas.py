"""Pydantic models for user profiles."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import Field, HttpUrl, field_validator

from challenge_suite.schemas import ApiModel

if TYPE_CHECKING:
    from challenge_suite.db.models import User


class UserSummary(ApiModel):
    """The author/owner block embedded in other resources."""

    id: int
    name: str
    username: str
    avatar: str | None = None


class UserStats(ApiModel):
    total_points: int = 0
    badges_collected: int = 0
    challenges_entered: int = 0
    challenges_won: int = 0


class EarnedBadge(ApiModel):
    id: str = Field(validation_alias="badge_id")
    name: str
    description: str
    image: str
    earned_at: datetime


class UserResponse(ApiModel):
    id: int
    name: str
    email: str
    username: str
    avatar: str | None = None
    bio: str = ""
    location: str = ""
    website: str = ""
    role: str
    stats: UserStats
    badges: list[EarnedBadge] = []
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            username=user.username,
            avatar=user.avatar,
            bio=user.bio,
            location=user.location,
            website=user.website,
            role=user.role,
            stats=UserStats.model_validate(user),
            badges=[EarnedBadge.model_validate(b) for b in user.badges],
            created_at=user.created_at,
        )


class ProfileSubmission(ApiModel):
    id: int
    challenge_id: int
    title: str
    media_url: str
    media_type: str
    votes: int
    is_winner: bool
    submitted_at: datetime


class PublicProfileResponse(ApiModel):
    id: int
    name: str
    username: str
    avatar: str | None = None
    bio: str = ""
    location: str = ""
    website: str = ""
    stats: UserStats
    badges: list[EarnedBadge] = []
    followers_count: int = 0
    following_count: int = 0
    submissions: list[ProfileSubmission] = []
    created_at: datetime


class UpdateProfileRequest(ApiModel):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    bio: str | None = Field(default=None, max_length=160)
    avatar: HttpUrl | None = None
    location: str | None = Field(default=None, max_length=50)
    website: str | None = Field(default=None, max_length=256)

    @field_validator("name", "bio", "location", "website")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v
