"""Submission endpoints."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.auth.dependencies import get_current_user
from challenge_suite.database import get_session
from challenge_suite.db.models import User
from challenge_suite.gamification.badge_service import evaluate_badges_safely
from challenge_suite.schemas import Pagination
from challenge_suite.submissions.schemas import (
    SubmissionCreate,
    SubmissionEnvelope,
    SubmissionListResponse,
    SubmissionResponse,
)
from challenge_suite.submissions.service import create_submission, list_submissions

router = APIRouter(prefix="/api/v1/submissions", tags=["Submissions"])


@router.get("", response_model=SubmissionListResponse)
async def list_all(
    challenge_id: int | None = Query(None, alias="challengeId"),
    user_id: int | None = Query(None, alias="userId"),
    status: str | None = Query(None),
    submission_id: int | None = Query(None, alias="id"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> SubmissionListResponse:
    submissions, total = await list_submissions(
        db,
        challenge_id=challenge_id,
        user_id=user_id,
        status=status,
        submission_id=submission_id,
        page=page,
        limit=limit,
    )
    return SubmissionListResponse(
        submissions=[SubmissionResponse.model_validate(s) for s in submissions],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("", response_model=SubmissionEnvelope, status_code=201)
async def create(
    body: SubmissionCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> SubmissionEnvelope:
    """Enter a challenge. Badges are evaluated after the response is sent."""
    submission = await create_submission(db, user, body)
    background_tasks.add_task(evaluate_badges_safely, user.id)
    return SubmissionEnvelope(
        message="Submission created successfully",
        submission=SubmissionResponse.model_validate(submission),
    )
