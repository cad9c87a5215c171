"""
Authentication business logic: user lookup, registration and login.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from challenge_suite.auth.password import hash_password, needs_rehash, verify_password
from challenge_suite.db.models import User
from challenge_suite.errors import ConflictError, UnauthorizedError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    """Fetch a user by username (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.username) == username.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration and login
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    name: str,
    email: str,
    username: str,
    password: str,
    role: str = "user",
) -> User:
    """
    Create a user account.

    Raises:
        ConflictError: If the email or username is already taken.
    """
    if await get_user_by_email(db, email) is not None:
        msg = "Email already registered"
        raise ConflictError(msg)
    if await get_user_by_username(db, username) is not None:
        msg = "Username already taken"
        raise ConflictError(msg)

    user = User(
        name=name,
        email=email.lower().strip(),
        username=username.lower(),
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # A concurrent registration took the email or username first
        await db.rollback()
        msg = "Email or username already taken"
        raise ConflictError(msg) from e
    logger.info("user_created", user_id=user.id, username=user.username, role=role)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Check email + password.

    Raises:
        UnauthorizedError: On unknown email or wrong password (same message for both).
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        msg = "Invalid email or password"
        raise UnauthorizedError(msg)

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        await db.commit()
        logger.info("password_rehashed", user_id=user.id)
    return user
