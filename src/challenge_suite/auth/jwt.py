"""
HS256 session tokens.

A session only has to yield a user id (``sub``); ``role`` rides along so
role gates do not need the user row, but dependencies still load the user.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from challenge_suite.config import get_settings

TOKEN_TYPE = "session"


def create_session_token(user_id: int, role: str) -> str:
    """Create a signed session token for ``user_id``."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.session_expire_minutes),
        "iss": settings.session_issuer,
        "type": TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.session_secret, algorithm=settings.session_algorithm)


def verify_session_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a session token.

    Raises:
        jwt.InvalidTokenError: bad signature, expired, wrong issuer or wrong type.
    """
    settings = get_settings()
    payload: dict[str, Any] = jwt.decode(
        token,
        settings.session_secret,
        algorithms=[settings.session_algorithm],
        issuer=settings.session_issuer,
        options={"require": ["sub", "exp", "iat", "iss", "type"]},
    )
    if payload.get("type") != TOKEN_TYPE:
        msg = f"Invalid token type: expected {TOKEN_TYPE}"
        raise jwt.InvalidTokenError(msg)
    return payload
