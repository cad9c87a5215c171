"""Badge engine: award every catalogue badge whose rule has become true."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from challenge_suite.database import get_session
from challenge_suite.db.models import Submission, User, UserBadge, Vote
from challenge_suite.gamification.badges import RULES, BadgeFacts

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def earned_badge_ids(db: AsyncSession, user_id: int) -> set[str]:
    result = await db.execute(select(UserBadge.badge_id).where(UserBadge.user_id == user_id))
    return set(result.scalars())


async def collect_facts(db: AsyncSession, user: User) -> BadgeFacts:
    """Gather the counters the rules are written against."""
    votes_cast = await db.scalar(select(func.count()).select_from(Vote).where(Vote.user_id == user.id))
    best = await db.scalar(select(func.max(Submission.votes)).where(Submission.user_id == user.id))
    return BadgeFacts(
        challenges_entered=user.challenges_entered,
        votes_cast=votes_cast or 0,
        best_submission_votes=best or 0,
    )


async def _insert_new_badges(db: AsyncSession, user_id: int) -> list[str] | None:
    """Flush a UserBadge row for each newly-qualified badge.

    Returns None when another writer inserted one of the rows first; the
    session has been rolled back in that case.
    """
    user = await db.scalar(select(User).where(User.id == user_id).execution_options(populate_existing=True))
    if user is None:
        return []

    held = await earned_badge_ids(db, user_id)
    facts = await collect_facts(db, user)
    new_badges = [badge for badge, rule in RULES if badge.id not in held and rule(facts)]
    if not new_badges:
        return []

    now = datetime.now(timezone.utc)
    for badge in new_badges:
        db.add(
            UserBadge(
                user_id=user_id,
                badge_id=badge.id,
                name=badge.name,
                description=badge.description,
                image=badge.image,
                earned_at=now,
            )
        )
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        return None
    return [b.id for b in new_badges]


async def evaluate_badges(db: AsyncSession, user_id: int) -> list[str]:
    """Award all newly-qualified badges to a user and commit.

    Badges already held are skipped, so evaluating twice with unchanged state
    awards nothing the second time. Badges are never removed.

    Returns the ids of the badges awarded by this call (may be empty).
    """
    awarded = await _insert_new_badges(db, user_id)
    if awarded is None:
        # A concurrent evaluation got there first; award whatever it left over
        logger.info("badge_award_retry", user_id=user_id)
        awarded = await _insert_new_badges(db, user_id)
    if not awarded:
        return []

    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(badges_collected=User.badges_collected + len(awarded))
    )
    await db.commit()

    logger.info("badges_awarded", user_id=user_id, badges=awarded)
    return awarded


async def evaluate_badges_safely(user_id: int) -> None:
    """Run the badge engine in its own session; failures are logged, never raised.

    Scheduled as a background task after votes and submissions.
    """
    try:
        async for db in get_session():
            await evaluate_badges(db, user_id)
    except Exception:
        logger.exception("badge_evaluation_failed", user_id=user_id)
