"""Comments on submissions and user follows."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from challenge_suite.db.models import Comment, Follow, Submission, User
from challenge_suite.errors import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


async def list_comments(db: AsyncSession, submission_id: int) -> Sequence[Comment]:
    result = await db.execute(
        select(Comment)
        .where(Comment.submission_id == submission_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return result.scalars().all()


async def add_comment(db: AsyncSession, user: User, submission_id: int, content: str) -> Comment:
    if await db.scalar(select(Submission.id).where(Submission.id == submission_id)) is None:
        msg = "Submission not found"
        raise NotFoundError(msg)

    comment = Comment(submission_id=submission_id, user_id=user.id, content=content.strip())
    db.add(comment)
    await db.commit()
    logger.info("comment_added", comment_id=comment.id, submission_id=submission_id, user_id=user.id)
    result = await db.execute(
        select(Comment).where(Comment.id == comment.id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def delete_comment(db: AsyncSession, user: User, comment_id: int) -> None:
    """Only the author may delete a comment."""
    author_id = await db.scalar(select(Comment.user_id).where(Comment.id == comment_id))
    if author_id is None:
        msg = "Comment not found"
        raise NotFoundError(msg)
    if author_id != user.id:
        msg = "You can only delete your own comments"
        raise ForbiddenError(msg)

    await db.execute(delete(Comment).where(Comment.id == comment_id))
    await db.commit()
    logger.info("comment_deleted", comment_id=comment_id, user_id=user.id)


# ---------------------------------------------------------------------------
# Follows
# ---------------------------------------------------------------------------


async def toggle_follow(db: AsyncSession, follower_id: int, target_id: int) -> Literal["followed", "unfollowed"]:
    """Follow ``target_id``, or unfollow if already following.

    Raises:
        ValidationFailedError: Following yourself.
        NotFoundError: Unknown target user.
    """
    if follower_id == target_id:
        msg = "You cannot follow yourself"
        raise ValidationFailedError(msg)
    if await db.scalar(select(User.id).where(User.id == target_id)) is None:
        msg = "User not found"
        raise NotFoundError(msg)

    follow_id = await db.scalar(
        select(Follow.id).where(Follow.follower_id == follower_id, Follow.following_id == target_id)
    )
    if follow_id is not None:
        await db.execute(delete(Follow).where(Follow.id == follow_id))
        await db.commit()
        logger.info("user_unfollowed", follower_id=follower_id, following_id=target_id)
        return "unfollowed"

    db.add(Follow(follower_id=follower_id, following_id=target_id))
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        msg = "Already following"
        raise ConflictError(msg) from e
    await db.commit()
    logger.info("user_followed", follower_id=follower_id, following_id=target_id)
    return "followed"


async def list_followers(db: AsyncSession, user_id: int) -> list[User]:
    """Users following ``user_id``."""
    result = await db.execute(
        select(Follow).where(Follow.following_id == user_id).order_by(Follow.created_at.desc(), Follow.id.desc())
    )
    return [f.follower for f in result.scalars()]


async def list_following(db: AsyncSession, user_id: int) -> list[User]:
    """Users ``user_id`` follows."""
    result = await db.execute(
        select(Follow).where(Follow.follower_id == user_id).order_by(Follow.created_at.desc(), Follow.id.desc())
    )
    return [f.following for f in result.scalars()]
