"""Pydantic models for badges, leaderboards and reconciliation."""

from __future__ import annotations

from pydantic import Field

from challenge_suite.schemas import ApiModel, Pagination
from challenge_suite.users.schemas import UserSummary


class BadgeResponse(ApiModel):
    id: str
    name: str
    description: str
    image: str


class BadgeCatalogueResponse(ApiModel):
    badges: list[BadgeResponse]


class ChallengeRef(ApiModel):
    id: int
    title: str


class LeaderboardEntryResponse(ApiModel):
    id: int
    user: UserSummary
    challenge: ChallengeRef | None = None
    points: int
    wins: int


class RankedEntryResponse(LeaderboardEntryResponse):
    rank: int


class LeaderboardResponse(ApiModel):
    leaderboard: list[RankedEntryResponse]
    pagination: Pagination


class RecordPointsRequest(ApiModel):
    user_id: int
    challenge_id: int | None = None
    points: int = 0
    wins: int = Field(default=0, ge=0)


class ReconciliationResponse(ApiModel):
    submissions_fixed: int
    users_fixed: int
    entries_backfilled: int
    badges_awarded: int
