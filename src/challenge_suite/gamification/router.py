"""Badge catalogue, leaderboards and the admin reconciliation trigger."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.auth.dependencies import require_admin
from challenge_suite.database import get_session
from challenge_suite.db.models import User
from challenge_suite.gamification.badges import BADGES
from challenge_suite.gamification.leaderboard_service import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    get_leaderboard,
    record_points,
)
from challenge_suite.gamification.reconciliation import reconcile_all
from challenge_suite.gamification.schemas import (
    BadgeCatalogueResponse,
    BadgeResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    RankedEntryResponse,
    ReconciliationResponse,
    RecordPointsRequest,
)
from challenge_suite.schemas import Pagination

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


@router.get("/badges", response_model=BadgeCatalogueResponse)
async def list_badges() -> BadgeCatalogueResponse:
    """Every badge that can be earned."""
    return BadgeCatalogueResponse(badges=[BadgeResponse(**asdict(b)) for b in BADGES])


@router.get("/leaderboards", response_model=LeaderboardResponse)
async def leaderboard(
    challenge_id: int | None = Query(None, alias="challengeId"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> LeaderboardResponse:
    """Global board, or one challenge's board when ``challengeId`` is given."""
    ranked, total = await get_leaderboard(db, challenge_id, page, limit)
    rows = [
        RankedEntryResponse(
            rank=rank,
            **LeaderboardEntryResponse.model_validate(entry).model_dump(),
        )
        for rank, entry in ranked
    ]
    return LeaderboardResponse(leaderboard=rows, pagination=Pagination.build(page, limit, total))


@router.post("/leaderboards", response_model=LeaderboardEntryResponse)
async def add_points(
    body: RecordPointsRequest,
    _admin: User = Depends(require_admin),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> LeaderboardEntryResponse:
    entry = await record_points(db, body.user_id, body.challenge_id, body.points, body.wins)
    await db.commit()
    return LeaderboardEntryResponse.model_validate(entry)


@router.post("/admin/reconcile", response_model=ReconciliationResponse)
async def reconcile(
    _admin: User = Depends(require_admin),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ReconciliationResponse:
    """Rebuild cached counters from the underlying facts."""
    report = await reconcile_all(db)
    return ReconciliationResponse(**asdict(report))
