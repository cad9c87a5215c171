"""User profile reads and updates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select

from challenge_suite.auth.service import get_user_by_username
from challenge_suite.db.models import Follow, Submission, User
from challenge_suite.errors import NotFoundError
from challenge_suite.users.schemas import (
    EarnedBadge,
    ProfileSubmission,
    PublicProfileResponse,
    UserStats,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

PROFILE_SUBMISSIONS_LIMIT = 50


async def count_follows(db: AsyncSession, user_id: int) -> tuple[int, int]:
    """Return ``(followers, following)`` for a user."""
    followers = await db.scalar(select(func.count()).select_from(Follow).where(Follow.following_id == user_id))
    following = await db.scalar(select(func.count()).select_from(Follow).where(Follow.follower_id == user_id))
    return followers or 0, following or 0


async def get_public_profile(db: AsyncSession, username: str) -> PublicProfileResponse:
    """Look up a profile by username, ignoring case and a leading ``@``."""
    user = await get_user_by_username(db, username.strip().lstrip("@"))
    if user is None:
        msg = "User not found"
        raise NotFoundError(msg)

    followers, following = await count_follows(db, user.id)
    result = await db.execute(
        select(Submission)
        .where(Submission.user_id == user.id, Submission.status == "approved")
        .order_by(Submission.submitted_at.desc())
        .limit(PROFILE_SUBMISSIONS_LIMIT)
    )
    submissions = result.scalars().all()

    return PublicProfileResponse(
        id=user.id,
        name=user.name,
        username=user.username,
        avatar=user.avatar,
        bio=user.bio,
        location=user.location,
        website=user.website,
        stats=UserStats.model_validate(user),
        badges=[EarnedBadge.model_validate(b) for b in user.badges],
        followers_count=followers,
        following_count=following,
        submissions=[ProfileSubmission.model_validate(s) for s in submissions],
        created_at=user.created_at,
    )


async def update_profile(db: AsyncSession, user: User, changes: dict[str, Any]) -> User:
    """Apply the provided fields to the user's profile."""
    for field, value in changes.items():
        setattr(user, field, str(value) if field == "avatar" and value is not None else value)
    await db.commit()
    await db.refresh(user)
    logger.info("profile_updated", user_id=user.id, fields=sorted(changes))
    return user
