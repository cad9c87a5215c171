"""Out-of-band repair of denormalized counters.

Cached counters can drift from the facts they summarize (a crash between
statements, manual edits, older data). This pass rebuilds them:

1. ``submissions.votes`` from the vote facts;
2. per user, ``challenges_entered`` from submissions and ``badges_collected``
   from earned badges; ``total_points`` and ``challenges_won`` mirror the
   global leaderboard entry, which is backfilled from the stats when missing;
3. the badge engine is re-run for every user.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from challenge_suite.db.models import LeaderboardEntry, Submission, User, UserBadge, Vote
from challenge_suite.gamification.badge_service import evaluate_badges

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass
class ReconciliationReport:
    submissions_fixed: int = 0
    users_fixed: int = 0
    entries_backfilled: int = 0
    badges_awarded: int = 0


async def reconcile_vote_counts(db: AsyncSession) -> int:
    """Set every submission's ``votes`` to its number of vote facts. Returns how many changed."""
    fact_counts = (
        select(Vote.submission_id, func.count(Vote.id).label("n"))
        .group_by(Vote.submission_id)
        .subquery()
    )
    result = await db.execute(
        select(Submission, func.coalesce(fact_counts.c.n, 0))
        .outerjoin(fact_counts, fact_counts.c.submission_id == Submission.id)
        .execution_options(populate_existing=True)
    )
    fixed = 0
    for submission, actual in result.all():
        if submission.votes != actual:
            logger.warning(
                "vote_count_drift",
                submission_id=submission.id,
                cached=submission.votes,
                actual=actual,
            )
            submission.votes = actual
            fixed += 1
    await db.flush()
    return fixed


async def reconcile_user_stats(db: AsyncSession, report: ReconciliationReport) -> list[int]:
    """Rebuild user stats. Returns the ids of every user seen."""
    submissions = dict(
        (await db.execute(select(Submission.user_id, func.count()).group_by(Submission.user_id))).tuples().all()
    )
    badges = dict(
        (await db.execute(select(UserBadge.user_id, func.count()).group_by(UserBadge.user_id))).tuples().all()
    )
    global_entries = {
        entry.user_id: entry
        for entry in (
            await db.execute(
                select(LeaderboardEntry)
                .where(LeaderboardEntry.challenge_id.is_(None))
                .execution_options(populate_existing=True)
            )
        ).scalars()
    }

    users = (
        await db.execute(select(User).order_by(User.id).execution_options(populate_existing=True))
    ).scalars().all()
    for user in users:
        entry = global_entries.get(user.id)
        if entry is None and (user.total_points or user.challenges_won):
            entry = LeaderboardEntry(
                user_id=user.id,
                challenge_id=None,
                points=user.total_points,
                wins=user.challenges_won,
            )
            db.add(entry)
            report.entries_backfilled += 1

        expected = {
            "challenges_entered": submissions.get(user.id, 0),
            "badges_collected": badges.get(user.id, 0),
            "total_points": entry.points if entry is not None else 0,
            "challenges_won": entry.wins if entry is not None else 0,
        }
        changed = {field: value for field, value in expected.items() if getattr(user, field) != value}
        if changed:
            for field, value in changed.items():
                setattr(user, field, value)
            report.users_fixed += 1
            logger.info("user_stats_repaired", user_id=user.id, fields=sorted(changed))

    await db.flush()
    return [user.id for user in users]


async def reconcile_all(db: AsyncSession) -> ReconciliationReport:
    """Run the full repair pass and commit."""
    report = ReconciliationReport()
    report.submissions_fixed = await reconcile_vote_counts(db)
    user_ids = await reconcile_user_stats(db, report)
    await db.commit()

    for user_id in user_ids:
        report.badges_awarded += len(await evaluate_badges(db, user_id))

    logger.info("reconciliation_completed", **asdict(report))
    return report
