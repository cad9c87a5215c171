"""User profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.auth.dependencies import get_current_user
from challenge_suite.database import get_session
from challenge_suite.db.models import User
from challenge_suite.users.schemas import PublicProfileResponse, UpdateProfileRequest, UserResponse
from challenge_suite.users.service import get_public_profile, update_profile

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)) -> UserResponse:  # noqa: B008
    return UserResponse.from_user(user)


@router.patch("/me", response_model=UserResponse)
async def patch_me(
    body: UpdateProfileRequest,
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> UserResponse:
    """Update name, bio, avatar, location or website. Omitted fields are left alone."""
    user = await update_profile(db, user, body.model_dump(exclude_unset=True, exclude_none=True))
    return UserResponse.from_user(user)


@router.get("/{username}", response_model=PublicProfileResponse)
async def get_profile(
    username: str,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> PublicProfileResponse:
    return await get_public_profile(db, username)
