"""Public stats, admin overview, search and trending endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.auth.dependencies import require_admin
from challenge_suite.challenges.schemas import ChallengeResponse
from challenge_suite.database import get_session
from challenge_suite.db.models import User
from challenge_suite.discovery.schemas import (
    AdminStatsResponse,
    PublicStatsResponse,
    SearchCount,
    SearchResponse,
    SearchResults,
    TrendingResponse,
    UserSearchHit,
)
from challenge_suite.discovery.service import get_admin_overview, get_public_stats, get_trending, search
from challenge_suite.submissions.schemas import SubmissionResponse

router = APIRouter(prefix="/api/v1", tags=["Discovery"])


@router.get("/stats", response_model=PublicStatsResponse)
async def public_stats(db: AsyncSession = Depends(get_session)) -> PublicStatsResponse:  # noqa: B008
    return PublicStatsResponse.model_validate({"stats": await get_public_stats(db)})


@router.get("/admin/stats", response_model=AdminStatsResponse)
async def admin_stats(
    _admin: User = Depends(require_admin),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> AdminStatsResponse:
    return AdminStatsResponse.model_validate(await get_admin_overview(db))


@router.get("/search", response_model=SearchResponse)
async def search_all(
    q: str = Query(""),
    kind: Literal["all", "submissions", "challenges", "users"] = Query("all", alias="type"),
    limit: int = Query(20, ge=1, le=50),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> SearchResponse:
    """Types that were not asked for come back as empty lists."""
    hits = await search(db, q, kind, limit)
    results = SearchResults(
        submissions=[SubmissionResponse.model_validate(s) for s in hits.submissions],
        challenges=[ChallengeResponse.model_validate(c) for c in hits.challenges],
        users=[UserSearchHit.model_validate(u) for u in hits.users],
    )
    count = SearchCount(
        submissions=len(results.submissions),
        challenges=len(results.challenges),
        users=len(results.users),
    )
    return SearchResponse(query=q, results=results, count=count)


@router.get("/trending", response_model=TrendingResponse)
async def trending(
    period: Literal["day", "week", "month"] = Query("week"),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> TrendingResponse:
    submissions = await get_trending(db, period, limit)
    return TrendingResponse(
        period=period,
        trending=[SubmissionResponse.model_validate(s) for s in submissions],
        count=len(submissions),
    )
