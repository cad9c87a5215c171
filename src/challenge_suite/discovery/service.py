"""Site-wide counters, the admin overview, search and the trending feed.

Public totals are cached in Redis for a minute. Without Redis they are
counted on every request.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import structlog
from redis.exceptions import RedisError
from sqlalchemy import func, or_, select

from challenge_suite.db.models import Challenge, Submission, User
from challenge_suite.errors import ValidationFailedError
from challenge_suite.redis_client import get_redis

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

PUBLIC_STATS_CACHE_KEY = "stats:public"
PUBLIC_STATS_CACHE_TTL = 60

TREND_WINDOW = timedelta(days=7)
TRENDING_WINDOWS = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}

MIN_QUERY_LENGTH = 2
RECENT_CHALLENGES = 5
TOP_LEADERS = 3
RECENT_ACTIVITY = 5


@dataclass
class SearchHits:
    submissions: Sequence[Submission] = field(default_factory=list)
    challenges: Sequence[Challenge] = field(default_factory=list)
    users: Sequence[User] = field(default_factory=list)


async def _count(db: AsyncSession, model: type[Any], *filters: Any) -> int:  # noqa: ANN401
    return await db.scalar(select(func.count()).select_from(model).where(*filters)) or 0


async def _totals(db: AsyncSession) -> dict[str, int]:
    return {
        "total_challenges": await _count(db, Challenge),
        "total_users": await _count(db, User),
        "total_submissions": await _count(db, Submission),
    }


async def _read_cache(key: str) -> dict[str, Any] | None:
    try:
        cached = await get_redis().get(key)
    except RuntimeError:
        return None
    except RedisError:
        logger.warning("stats_cache_unavailable", exc_info=True)
        return None
    return json.loads(cached) if cached else None


async def _write_cache(key: str, value: dict[str, Any], ttl: int) -> None:
    try:
        await get_redis().setex(key, ttl, json.dumps(value))
    except RuntimeError:
        return
    except RedisError:
        logger.warning("stats_cache_unavailable", exc_info=True)


async def get_public_stats(db: AsyncSession) -> dict[str, int]:
    """Challenge, user and submission totals."""
    cached = await _read_cache(PUBLIC_STATS_CACHE_KEY)
    if cached is not None:
        return cached

    stats = await _totals(db)
    await _write_cache(PUBLIC_STATS_CACHE_KEY, stats, PUBLIC_STATS_CACHE_TTL)
    return stats


def _duration_days(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / 86400)


async def get_admin_overview(db: AsyncSession, now: datetime | None = None) -> dict[str, Any]:
    """Everything the admin dashboard shows on one screen.

    Totals are always counted fresh. ``trends`` counts rows created in the
    seven days before ``now``.
    """
    now = now or datetime.now(timezone.utc)
    since = now - TREND_WINDOW

    stats: dict[str, Any] = await _totals(db)
    stats["active_challenges"] = await _count(db, Challenge, Challenge.status == "active")
    stats["trends"] = {
        "challenges": await _count(db, Challenge, Challenge.created_at >= since),
        "users": await _count(db, User, User.created_at >= since),
        "submissions": await _count(db, Submission, Submission.created_at >= since),
    }

    challenges = await db.scalars(
        select(Challenge).order_by(Challenge.created_at.desc(), Challenge.id.desc()).limit(RECENT_CHALLENGES)
    )
    leaders = await db.scalars(select(User).order_by(User.total_points.desc(), User.id).limit(TOP_LEADERS))
    submissions = await db.scalars(
        select(Submission).order_by(Submission.created_at.desc(), Submission.id.desc()).limit(RECENT_ACTIVITY)
    )

    return {
        "stats": stats,
        "recent_challenges": [
            {
                "id": c.id,
                "name": c.title,
                "status": c.status,
                "participants": c.participants,
                "duration_days": _duration_days(c.start_date, c.end_date),
            }
            for c in challenges.unique()
        ],
        "top_leaders": [
            {"rank": rank, "name": u.name, "points": u.total_points, "challenges_won": u.challenges_won}
            for rank, u in enumerate(leaders, start=1)
        ],
        "recent_activity": [
            {
                "user": s.author.name,
                "challenge": s.challenge.title,
                "status": s.status,
                "created_at": s.created_at,
            }
            for s in submissions.unique()
        ],
    }


async def search(db: AsyncSession, query: str, kind: str = "all", limit: int = 20) -> SearchHits:
    """Case-insensitive substring search across approved submissions, challenges and users.

    Raises:
        ValidationFailedError: If the trimmed query is shorter than two characters.
    """
    term = query.strip()
    if len(term) < MIN_QUERY_LENGTH:
        msg = f"Search query must be at least {MIN_QUERY_LENGTH} characters"
        raise ValidationFailedError(msg)
    pattern = f"%{term.lower()}%"
    hits = SearchHits()

    if kind in ("all", "submissions"):
        result = await db.scalars(
            select(Submission)
            .where(
                Submission.status == "approved",
                or_(func.lower(Submission.title).like(pattern), func.lower(Submission.description).like(pattern)),
            )
            .order_by(Submission.votes.desc(), Submission.created_at.desc(), Submission.id.desc())
            .limit(limit)
        )
        hits.submissions = result.unique().all()

    if kind in ("all", "challenges"):
        result = await db.scalars(
            select(Challenge)
            .where(
                or_(
                    func.lower(Challenge.title).like(pattern),
                    func.lower(Challenge.description).like(pattern),
                    func.lower(Challenge.category).like(pattern),
                )
            )
            .order_by(Challenge.participants.desc(), Challenge.created_at.desc(), Challenge.id.desc())
            .limit(limit)
        )
        hits.challenges = result.unique().all()

    if kind in ("all", "users"):
        # Email addresses are private and never matched
        result = await db.scalars(
            select(User)
            .where(or_(func.lower(User.name).like(pattern), func.lower(User.username).like(pattern)))
            .order_by(User.total_points.desc(), User.id)
            .limit(limit)
        )
        hits.users = result.unique().all()

    return hits


async def get_trending(
    db: AsyncSession,
    period: str = "week",
    limit: int = 10,
    now: datetime | None = None,
) -> Sequence[Submission]:
    """Most-voted approved submissions created within the period."""
    since = (now or datetime.now(timezone.utc)) - TRENDING_WINDOWS[period]
    result = await db.scalars(
        select(Submission)
        .where(Submission.status == "approved", Submission.created_at >= since)
        .order_by(Submission.votes.desc(), Submission.created_at.desc(), Submission.id.desc())
        .limit(limit)
    )
    return result.unique().all()
