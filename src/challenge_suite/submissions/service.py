"""Submission listing and creation.

Creating a submission is the main source of progress for a user: it marks
the challenge completed, bumps the participant and entry counters, awards
points on the global and per-challenge boards and (after the response) runs
the badge engine.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from challenge_suite.challenges.service import get_challenge
from challenge_suite.config import get_settings
from challenge_suite.db.models import Challenge, ChallengeParticipation, Submission, User
from challenge_suite.errors import ConflictError, NotFoundError, ValidationFailedError
from challenge_suite.gamification.leaderboard_service import record_points

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from challenge_suite.submissions.schemas import SubmissionCreate

logger = structlog.get_logger()

ALREADY_SUBMITTED = "You have already submitted to this challenge"


async def get_submission(db: AsyncSession, submission_id: int) -> Submission:
    submission = await db.scalar(
        select(Submission).where(Submission.id == submission_id).execution_options(populate_existing=True)
    )
    if submission is None:
        msg = "Submission not found"
        raise NotFoundError(msg)
    return submission


async def list_submissions(
    db: AsyncSession,
    *,
    challenge_id: int | None = None,
    user_id: int | None = None,
    status: str | None = None,
    submission_id: int | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[Sequence[Submission], int]:
    """Filtered page ordered by votes, then newest first."""
    filters = []
    if submission_id is not None:
        filters.append(Submission.id == submission_id)
    if challenge_id is not None:
        filters.append(Submission.challenge_id == challenge_id)
    if user_id is not None:
        filters.append(Submission.user_id == user_id)
    if status:
        filters.append(Submission.status == status)

    total = await db.scalar(select(func.count()).select_from(Submission).where(*filters)) or 0
    result = await db.execute(
        select(Submission)
        .where(*filters)
        .order_by(Submission.votes.desc(), Submission.created_at.desc(), Submission.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return result.scalars().all(), total


async def _complete_participation(db: AsyncSession, user_id: int, challenge_id: int) -> None:
    """Get-or-create the participation row and mark it completed."""
    participation = await db.scalar(
        select(ChallengeParticipation).where(
            ChallengeParticipation.user_id == user_id,
            ChallengeParticipation.challenge_id == challenge_id,
        )
    )
    if participation is None:
        participation = ChallengeParticipation(user_id=user_id, challenge_id=challenge_id)
        db.add(participation)
    participation.progress = 100
    participation.status = "completed"
    participation.completed_at = datetime.now(timezone.utc)


async def create_submission(db: AsyncSession, user: User, data: SubmissionCreate) -> Submission:
    """Enter a challenge and commit every side effect in one transaction.

    Raises:
        NotFoundError: Unknown challenge.
        ValidationFailedError: The challenge has ended or is full.
        ConflictError: The user already submitted to this challenge.
    """
    challenge = await get_challenge(db, data.challenge_id)
    if challenge.status == "ended":
        msg = "Challenge has ended. Submissions are no longer accepted."
        raise ValidationFailedError(msg)
    if challenge.max_participants is not None and challenge.participants >= challenge.max_participants:
        msg = "Challenge is full"
        raise ValidationFailedError(msg)

    existing = await db.scalar(
        select(Submission.id).where(Submission.challenge_id == challenge.id, Submission.user_id == user.id)
    )
    if existing is not None:
        raise ConflictError(ALREADY_SUBMITTED)

    submission = Submission(
        challenge_id=challenge.id,
        user_id=user.id,
        title=data.title,
        description=data.description,
        media_url=str(data.media_url),
        media_type=data.media_type,
        votes=0,
        status="pending",
        is_winner=False,
    )
    db.add(submission)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(ALREADY_SUBMITTED) from e

    await _complete_participation(db, user.id, challenge.id)
    await db.execute(
        update(Challenge).where(Challenge.id == challenge.id).values(participants=Challenge.participants + 1)
    )
    await db.execute(
        update(User).where(User.id == user.id).values(challenges_entered=User.challenges_entered + 1)
    )
    points = get_settings().points_per_submission
    await record_points(db, user.id, None, points)
    await record_points(db, user.id, challenge.id, points)
    await db.commit()

    logger.info(
        "submission_created",
        submission_id=submission.id,
        challenge_id=challenge.id,
        user_id=user.id,
    )
    return await get_submission(db, submission.id)
