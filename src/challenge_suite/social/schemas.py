"""Pydantic models for comments and follows."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import Field, StringConstraints

from challenge_suite.schemas import ApiModel
from challenge_suite.users.schemas import UserSummary


class CommentCreate(ApiModel):
    submission_id: int
    content: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]


class CommentResponse(ApiModel):
    id: int
    submission_id: int
    user: UserSummary = Field(validation_alias="author")
    content: str
    created_at: datetime


class CommentEnvelope(ApiModel):
    message: str
    comment: CommentResponse


class CommentListResponse(ApiModel):
    comments: list[CommentResponse]


class FollowRequest(ApiModel):
    user_id: int


class FollowToggleResponse(ApiModel):
    message: str
    action: Literal["followed", "unfollowed"]


class FollowCountsResponse(ApiModel):
    followers_count: int
    following_count: int


class FollowListResponse(ApiModel):
    data: list[UserSummary]
