"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.auth.jwt import verify_session_token
from challenge_suite.auth.service import get_user_by_id
from challenge_suite.database import get_session
from challenge_suite.db.models import User
from challenge_suite.errors import ForbiddenError, UnauthorizedError

# auto_error=False so a missing header surfaces as our 401 body, not FastAPI's
_bearer = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> User | None:
    """Resolve the session to a user, or None when no token was sent.

    A token that is present but invalid is still rejected.
    """
    if credentials is None:
        return None
    try:
        payload = verify_session_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError(str(e)) from e

    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        msg = "User not found"
        raise UnauthorizedError(msg)
    return user


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:  # noqa: B008
    """Require a valid session."""
    if user is None:
        msg = "Unauthorized"
        raise UnauthorizedError(msg)
    return user


async def require_creator(user: User = Depends(get_current_user)) -> User:  # noqa: B008
    """Admins and creators may publish challenges."""
    if user.role not in ("admin", "creator"):
        msg = "Only admins and creators can create challenges"
        raise ForbiddenError(msg)
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:  # noqa: B008
    if user.role != "admin":
        msg = "Admin access required"
        raise ForbiddenError(msg)
    return user
