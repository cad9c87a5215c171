"""Leaderboard aggregator: atomic point and win increments per (user, challenge).

An entry with ``challenge_id IS NULL`` is the user's global entry. It is the
source of truth for a user's points and wins; the ``total_points`` and
``challenges_won`` columns on ``users`` mirror it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from challenge_suite.db.models import Challenge, LeaderboardEntry, User
from challenge_suite.errors import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _insert_for(db: AsyncSession) -> Any:
    """The dialect's INSERT construct; both support ON CONFLICT DO UPDATE."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def record_points(
    db: AsyncSession,
    user_id: int,
    challenge_id: int | None,
    points_delta: int,
    wins_delta: int = 0,
) -> LeaderboardEntry:
    """Add points and wins to the (user, challenge) entry, creating it if absent.

    One upsert statement, so concurrent calls never lose an increment. Global
    increments are mirrored onto the user's stats in the same transaction.
    The caller commits.

    Raises:
        NotFoundError: If the user or the challenge does not exist.
    """
    if await db.scalar(select(User.id).where(User.id == user_id)) is None:
        msg = "User not found"
        raise NotFoundError(msg)
    if challenge_id is not None and await db.scalar(select(Challenge.id).where(Challenge.id == challenge_id)) is None:
        msg = "Challenge not found"
        raise NotFoundError(msg)

    now = datetime.now(timezone.utc)
    insert = _insert_for(db)
    stmt = insert(LeaderboardEntry).values(
        user_id=user_id,
        challenge_id=challenge_id,
        points=points_delta,
        wins=wins_delta,
        created_at=now,
        updated_at=now,
    )
    if challenge_id is None:
        target: dict[str, Any] = {
            "index_elements": [LeaderboardEntry.user_id],
            "index_where": LeaderboardEntry.challenge_id.is_(None),
        }
    else:
        target = {
            "index_elements": [LeaderboardEntry.user_id, LeaderboardEntry.challenge_id],
            "index_where": LeaderboardEntry.challenge_id.is_not(None),
        }
    stmt = stmt.on_conflict_do_update(
        **target,
        set_={
            "points": LeaderboardEntry.points + stmt.excluded.points,
            "wins": LeaderboardEntry.wins + stmt.excluded.wins,
            "updated_at": now,
        },
    ).returning(LeaderboardEntry.id)
    entry_id = (await db.execute(stmt)).scalar_one()

    if challenge_id is None:
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                total_points=User.total_points + points_delta,
                challenges_won=User.challenges_won + wins_delta,
            )
        )

    logger.info(
        "points_recorded",
        user_id=user_id,
        challenge_id=challenge_id,
        points=points_delta,
        wins=wins_delta,
    )
    result = await db.execute(
        select(LeaderboardEntry)
        .where(LeaderboardEntry.id == entry_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_leaderboard(
    db: AsyncSession,
    challenge_id: int | None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> tuple[list[tuple[int, LeaderboardEntry]], int]:
    """One page of a board as ``(rank, entry)`` pairs, plus the board's total size.

    Ordered by points, then wins, then entry id; rank is ``skip + index + 1``.
    """
    if challenge_id is None:
        scope = LeaderboardEntry.challenge_id.is_(None)
    else:
        scope = LeaderboardEntry.challenge_id == challenge_id

    total = await db.scalar(select(func.count()).select_from(LeaderboardEntry).where(scope)) or 0
    skip = (page - 1) * limit
    result = await db.execute(
        select(LeaderboardEntry)
        .where(scope)
        .order_by(LeaderboardEntry.points.desc(), LeaderboardEntry.wins.desc(), LeaderboardEntry.id.asc())
        .offset(skip)
        .limit(limit)
    )
    entries = result.scalars().all()
    return [(skip + index + 1, entry) for index, entry in enumerate(entries)], total
