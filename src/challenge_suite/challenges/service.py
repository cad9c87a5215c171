"""Challenge queries and mutations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, or_, select

from challenge_suite.challenges.schemas import ChallengeCreate, as_naive_utc
from challenge_suite.db.models import Challenge, User
from challenge_suite.errors import ForbiddenError, NotFoundError, ValidationFailedError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

_URL_FIELDS = ("image", "video_url")


def _plain(values: dict[str, Any]) -> dict[str, Any]:
    """Pydantic URL objects are stored as strings."""
    return {k: (str(v) if k in _URL_FIELDS and v is not None else v) for k, v in values.items()}


async def get_challenge(db: AsyncSession, challenge_id: int) -> Challenge:
    challenge = await db.scalar(
        select(Challenge).where(Challenge.id == challenge_id).execution_options(populate_existing=True)
    )
    if challenge is None:
        msg = "Challenge not found"
        raise NotFoundError(msg)
    return challenge


async def list_challenges(
    db: AsyncSession,
    *,
    status: str | None = None,
    category: str | None = None,
    badge: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[Sequence[Challenge], int]:
    """Filtered page of challenges, newest first, plus the filtered total."""
    filters = []
    if status:
        filters.append(Challenge.status == status)
    if category:
        filters.append(Challenge.category == category)
    if badge:
        filters.append(Challenge.badge == badge)
    if search:
        pattern = f"%{search.lower()}%"
        filters.append(or_(func.lower(Challenge.title).like(pattern), func.lower(Challenge.description).like(pattern)))

    total = await db.scalar(select(func.count()).select_from(Challenge).where(*filters)) or 0
    result = await db.execute(
        select(Challenge)
        .where(*filters)
        .order_by(Challenge.created_at.desc(), Challenge.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return result.scalars().all(), total


async def create_challenge(db: AsyncSession, creator: User, data: ChallengeCreate) -> Challenge:
    """New challenges start ``upcoming`` with no participants."""
    values = _plain(data.model_dump())
    if values["video_url"] is None:
        values["video_url"] = ""
    challenge = Challenge(**values, created_by=creator.id, status="upcoming", participants=0)
    db.add(challenge)
    await db.commit()
    challenge = await get_challenge(db, challenge.id)
    logger.info("challenge_created", challenge_id=challenge.id, created_by=creator.id)
    return challenge


async def update_challenge(
    db: AsyncSession,
    user: User,
    challenge_id: int,
    changes: dict[str, Any],
) -> Challenge:
    """Owner or admin only.

    Raises:
        NotFoundError: Unknown challenge.
        ForbiddenError: Caller is neither the owner nor an admin.
        ValidationFailedError: The resulting dates would end before they start.
    """
    challenge = await get_challenge(db, challenge_id)
    if challenge.created_by != user.id and user.role != "admin":
        msg = "You can only edit your own challenges"
        raise ForbiddenError(msg)

    changes = _plain(changes)
    start = changes.get("start_date", challenge.start_date)
    end = changes.get("end_date", challenge.end_date)
    if as_naive_utc(end) < as_naive_utc(start):
        msg = "endDate must not be before startDate"
        raise ValidationFailedError(msg, details=[{"field": "body.endDate", "message": msg}])

    for field, value in changes.items():
        setattr(challenge, field, value)
    await db.commit()
    logger.info("challenge_updated", challenge_id=challenge.id, fields=sorted(changes))
    return await get_challenge(db, challenge.id)


async def delete_challenge(db: AsyncSession, challenge_id: int) -> None:
    """Remove a challenge; its submissions, votes and favorites go with it."""
    challenge = await get_challenge(db, challenge_id)
    await db.delete(challenge)
    await db.commit()
    logger.info("challenge_deleted", challenge_id=challenge_id)
