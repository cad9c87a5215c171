"""Vote and favorite ledgers.

Both are toggles over fact rows whose uniqueness the database enforces.
Votes also keep ``submissions.votes`` in step with the number of vote rows:
the fact and the counter change in the same transaction, and the counter
only ever moves by a single-statement increment or decrement.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import structlog
from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import IntegrityError

from challenge_suite.db.models import Challenge, Favorite, Submission, Vote
from challenge_suite.errors import ConflictError, NotFoundError, ValidationFailedError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

Action = Literal["added", "removed"]


@dataclass(frozen=True)
class VoteToggle:
    action: Action
    submission_owner_id: int


# ---------------------------------------------------------------------------
# Votes
# ---------------------------------------------------------------------------


async def toggle_vote(db: AsyncSession, user_id: int, submission_id: int) -> VoteToggle:
    """Add the user's vote on a submission, or take it back if already cast.

    Raises:
        NotFoundError: Unknown submission.
        ConflictError: A concurrent request recorded the same vote first.
    """
    owner_id = await db.scalar(select(Submission.user_id).where(Submission.id == submission_id))
    if owner_id is None:
        msg = "Submission not found"
        raise NotFoundError(msg)

    vote_id = await db.scalar(
        select(Vote.id).where(Vote.submission_id == submission_id, Vote.user_id == user_id)
    )

    if vote_id is not None:
        result = await db.execute(delete(Vote).where(Vote.id == vote_id))
        # Only the request that actually removed the row decrements
        if result.rowcount:
            await db.execute(
                update(Submission)
                .where(Submission.id == submission_id)
                .values(votes=case((Submission.votes > 0, Submission.votes - 1), else_=0))
            )
        await db.commit()
        logger.info("vote_removed", user_id=user_id, submission_id=submission_id)
        return VoteToggle("removed", owner_id)

    db.add(Vote(submission_id=submission_id, user_id=user_id))
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        msg = "Vote already recorded"
        raise ConflictError(msg) from e
    await db.execute(
        update(Submission).where(Submission.id == submission_id).values(votes=Submission.votes + 1)
    )
    await db.commit()
    logger.info("vote_added", user_id=user_id, submission_id=submission_id)
    return VoteToggle("added", owner_id)


async def list_votes(db: AsyncSession, user_id: int) -> Sequence[Vote]:
    """The user's votes, newest first."""
    result = await db.execute(
        select(Vote).where(Vote.user_id == user_id).order_by(Vote.created_at.desc(), Vote.id.desc())
    )
    return result.scalars().all()


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------


async def toggle_favorite(
    db: AsyncSession,
    user_id: int,
    *,
    submission_id: int | None = None,
    challenge_id: int | None = None,
) -> Action:
    """Favorite or un-favorite exactly one submission or one challenge.

    Raises:
        ValidationFailedError: Neither or both targets given.
        NotFoundError: The target does not exist.
        ConflictError: A concurrent request added the same favorite first.
    """
    if (submission_id is None) == (challenge_id is None):
        msg = "Provide exactly one of submissionId or challengeId"
        raise ValidationFailedError(msg, details=[{"field": "body", "message": msg}])

    if submission_id is not None:
        if await db.scalar(select(Submission.id).where(Submission.id == submission_id)) is None:
            msg = "Submission not found"
            raise NotFoundError(msg)
        target = Favorite.submission_id == submission_id
    else:
        if await db.scalar(select(Challenge.id).where(Challenge.id == challenge_id)) is None:
            msg = "Challenge not found"
            raise NotFoundError(msg)
        target = Favorite.challenge_id == challenge_id

    favorite_id = await db.scalar(select(Favorite.id).where(Favorite.user_id == user_id, target))
    if favorite_id is not None:
        await db.execute(delete(Favorite).where(Favorite.id == favorite_id))
        await db.commit()
        logger.info("favorite_removed", user_id=user_id, submission_id=submission_id, challenge_id=challenge_id)
        return "removed"

    db.add(Favorite(user_id=user_id, submission_id=submission_id, challenge_id=challenge_id))
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        msg = "Already in favorites"
        raise ConflictError(msg) from e
    await db.commit()
    logger.info("favorite_added", user_id=user_id, submission_id=submission_id, challenge_id=challenge_id)
    return "added"


async def list_favorites(db: AsyncSession, user_id: int) -> Sequence[Favorite]:
    """The user's favorites, newest first, with their targets loaded."""
    result = await db.execute(
        select(Favorite).where(Favorite.user_id == user_id).order_by(Favorite.created_at.desc(), Favorite.id.desc())
    )
    return result.scalars().all()
