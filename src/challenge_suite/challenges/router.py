"""Challenge CRUD endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.auth.dependencies import get_current_user, require_admin, require_creator
from challenge_suite.challenges.schemas import (
    ChallengeCreate,
    ChallengeEnvelope,
    ChallengeListResponse,
    ChallengeResponse,
    ChallengeUpdate,
)
from challenge_suite.challenges.service import (
    create_challenge,
    delete_challenge,
    get_challenge,
    list_challenges,
    update_challenge,
)
from challenge_suite.database import get_session
from challenge_suite.db.models import User
from challenge_suite.schemas import Pagination

router = APIRouter(prefix="/api/v1/challenges", tags=["Challenges"])


@router.get("", response_model=ChallengeListResponse)
async def list_all(
    status: str | None = Query(None),
    category: str | None = Query(None),
    badge: str | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ChallengeListResponse:
    challenges, total = await list_challenges(
        db, status=status, category=category, badge=badge, search=search, page=page, limit=limit
    )
    return ChallengeListResponse(
        challenges=[ChallengeResponse.model_validate(c) for c in challenges],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{challenge_id}", response_model=ChallengeEnvelope)
async def get_one(
    challenge_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ChallengeEnvelope:
    challenge = await get_challenge(db, challenge_id)
    return ChallengeEnvelope(challenge=ChallengeResponse.model_validate(challenge))


@router.post("", response_model=ChallengeEnvelope, status_code=201)
async def create(
    body: ChallengeCreate,
    user: User = Depends(require_creator),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ChallengeEnvelope:
    """Admins and creators only."""
    challenge = await create_challenge(db, user, body)
    return ChallengeEnvelope(
        message="Challenge created successfully",
        challenge=ChallengeResponse.model_validate(challenge),
    )


@router.put("/{challenge_id}", response_model=ChallengeEnvelope)
async def update(
    challenge_id: int,
    body: ChallengeUpdate,
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ChallengeEnvelope:
    """Owner or admin only."""
    challenge = await update_challenge(db, user, challenge_id, body.model_dump(exclude_unset=True, exclude_none=True))
    return ChallengeEnvelope(
        message="Challenge updated successfully",
        challenge=ChallengeResponse.model_validate(challenge),
    )


@router.delete("/{challenge_id}")
async def delete(
    challenge_id: int,
    _admin: User = Depends(require_admin),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, str]:
    await delete_challenge(db, challenge_id)
    return {"message": "Challenge deleted successfully"}
