"""Authentication router: /api/v1/auth/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.auth.jwt import create_session_token
from challenge_suite.auth.schemas import LoginRequest, RegisterRequest, TokenResponse
from challenge_suite.auth.service import authenticate_user, register_user
from challenge_suite.database import get_session
from challenge_suite.db.models import User
from challenge_suite.users.schemas import UserResponse

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_session_token(user.id, user.role),
        user=UserResponse.from_user(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> TokenResponse:
    """Create an account and open a session."""
    user = await register_user(
        db,
        name=body.name,
        email=body.email,
        username=body.username,
        password=body.password,
    )
    await db.commit()
    await db.refresh(user)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> TokenResponse:
    """Login with email + password."""
    user = await authenticate_user(db, body.email, body.password)
    return _token_response(user)
