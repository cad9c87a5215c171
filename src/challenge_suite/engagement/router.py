"""Vote and favorite endpoints: /api/v1/votes, /api/v1/favorites."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.auth.dependencies import get_current_user
from challenge_suite.database import get_session
from challenge_suite.db.models import User
from challenge_suite.engagement.schemas import (
    FavoriteListResponse,
    FavoriteRequest,
    FavoriteResponse,
    ToggleResponse,
    VoteListResponse,
    VoteRequest,
    VoteResponse,
)
from challenge_suite.engagement.service import list_favorites, list_votes, toggle_favorite, toggle_vote
from challenge_suite.gamification.badge_service import evaluate_badges_safely

router = APIRouter(prefix="/api/v1", tags=["Engagement"])


@router.post("/votes", response_model=ToggleResponse)
async def vote(
    body: VoteRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ToggleResponse:
    """Toggle the caller's vote on a submission."""
    result = await toggle_vote(db, user.id, body.submission_id)
    if result.action == "removed":
        return ToggleResponse(message="Vote removed successfully", action="removed")

    # Top Voter for the voter, Creative Genius for the author
    background_tasks.add_task(evaluate_badges_safely, user.id)
    if result.submission_owner_id != user.id:
        background_tasks.add_task(evaluate_badges_safely, result.submission_owner_id)
    return ToggleResponse(message="Vote added successfully", action="added")


@router.get("/votes", response_model=VoteListResponse)
async def my_votes(
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> VoteListResponse:
    votes = await list_votes(db, user.id)
    return VoteListResponse(votes=[VoteResponse.model_validate(v) for v in votes])


@router.post("/favorites", response_model=ToggleResponse, status_code=201)
async def favorite(
    body: FavoriteRequest,
    response: Response,
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ToggleResponse:
    """Toggle a favorite: 201 when added, 200 when removed."""
    action = await toggle_favorite(
        db,
        user.id,
        submission_id=body.submission_id,
        challenge_id=body.challenge_id,
    )
    if action == "removed":
        response.status_code = 200
        return ToggleResponse(message="Removed from favorites", action="removed")
    return ToggleResponse(message="Added to favorites", action="added")


@router.get("/favorites", response_model=FavoriteListResponse)
async def my_favorites(
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> FavoriteListResponse:
    favorites = await list_favorites(db, user.id)
    return FavoriteListResponse(favorites=[FavoriteResponse.model_validate(f) for f in favorites])
