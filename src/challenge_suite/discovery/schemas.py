"""Pydantic models for site stats, search and trending feeds."""

from __future__ import annotations

from datetime import datetime

from challenge_suite.challenges.schemas import ChallengeResponse
from challenge_suite.schemas import ApiModel
from challenge_suite.submissions.schemas import SubmissionResponse
from challenge_suite.users.schemas import UserSummary


class PublicStats(ApiModel):
    total_challenges: int
    total_users: int
    total_submissions: int


class PublicStatsResponse(ApiModel):
    stats: PublicStats


class WeeklyTrends(ApiModel):
    """Rows created in the last seven days."""

    challenges: int
    users: int
    submissions: int


class AdminStats(PublicStats):
    active_challenges: int
    trends: WeeklyTrends


class RecentChallenge(ApiModel):
    id: int
    name: str
    status: str
    participants: int
    duration_days: int


class TopLeader(ApiModel):
    rank: int
    name: str
    points: int
    challenges_won: int


class RecentActivity(ApiModel):
    user: str
    challenge: str
    status: str
    created_at: datetime


class AdminStatsResponse(ApiModel):
    stats: AdminStats
    recent_challenges: list[RecentChallenge]
    top_leaders: list[TopLeader]
    recent_activity: list[RecentActivity]


class UserSearchHit(UserSummary):
    role: str
    total_points: int


class SearchResults(ApiModel):
    submissions: list[SubmissionResponse] = []
    challenges: list[ChallengeResponse] = []
    users: list[UserSearchHit] = []


class SearchCount(ApiModel):
    submissions: int
    challenges: int
    users: int


class SearchResponse(ApiModel):
    query: str
    results: SearchResults
    count: SearchCount


class TrendingResponse(ApiModel):
    period: str
    trending: list[SubmissionResponse]
    count: int
