"""Comment and follow endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.auth.dependencies import get_current_user
from challenge_suite.database import get_session
from challenge_suite.db.models import User
from challenge_suite.social.schemas import (
    CommentCreate,
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    FollowCountsResponse,
    FollowListResponse,
    FollowRequest,
    FollowToggleResponse,
)
from challenge_suite.social.service import (
    add_comment,
    delete_comment,
    list_comments,
    list_followers,
    list_following,
    toggle_follow,
)
from challenge_suite.users.schemas import UserSummary
from challenge_suite.users.service import count_follows

router = APIRouter(prefix="/api/v1", tags=["Social"])


# ── Comments ──


@router.get("/comments", response_model=CommentListResponse)
async def get_comments(
    submission_id: int = Query(..., alias="submissionId"),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> CommentListResponse:
    comments = await list_comments(db, submission_id)
    return CommentListResponse(comments=[CommentResponse.model_validate(c) for c in comments])


@router.post("/comments", response_model=CommentEnvelope, status_code=201)
async def post_comment(
    body: CommentCreate,
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> CommentEnvelope:
    comment = await add_comment(db, user, body.submission_id, body.content)
    return CommentEnvelope(message="Comment added successfully", comment=CommentResponse.model_validate(comment))


@router.delete("/comments")
async def remove_comment(
    comment_id: int = Query(..., alias="id"),
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, str]:
    await delete_comment(db, user, comment_id)
    return {"message": "Comment deleted successfully"}


# ── Follows ──


@router.get("/follow", response_model=FollowListResponse | FollowCountsResponse)
async def get_follow(
    user_id: int = Query(..., alias="userId"),
    type_: Literal["followers", "following"] | None = Query(None, alias="type"),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> FollowListResponse | FollowCountsResponse:
    """Follower or following list, or just the two counts when ``type`` is omitted."""
    if type_ == "followers":
        users = await list_followers(db, user_id)
    elif type_ == "following":
        users = await list_following(db, user_id)
    else:
        followers, following = await count_follows(db, user_id)
        return FollowCountsResponse(followers_count=followers, following_count=following)
    return FollowListResponse(data=[UserSummary.model_validate(u) for u in users])


@router.post("/follow", response_model=FollowToggleResponse, status_code=201)
async def post_follow(
    body: FollowRequest,
    response: Response,
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> FollowToggleResponse:
    """Toggle following: 201 when followed, 200 when unfollowed."""
    action = await toggle_follow(db, user.id, body.user_id)
    if action == "unfollowed":
        response.status_code = 200
        return FollowToggleResponse(message="Unfollowed successfully", action="unfollowed")
    return FollowToggleResponse(message="Followed successfully", action="followed")
