"""argon2id password hashes.

Cost parameters come from settings. Hashes made with older parameters still
verify, and ``needs_rehash`` tells the login path to upgrade them.
"""

from __future__ import annotations

from functools import lru_cache

import argon2

from challenge_suite.config import get_settings


@lru_cache(maxsize=4)
def _hasher(time_cost: int, memory_cost: int) -> argon2.PasswordHasher:
    return argon2.PasswordHasher(
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=1,
        hash_len=32,
        salt_len=16,
        type=argon2.Type.ID,
    )


def _current_hasher() -> argon2.PasswordHasher:
    settings = get_settings()
    return _hasher(settings.password_time_cost, settings.password_memory_cost_kib)


def hash_password(password: str) -> str:
    return _current_hasher().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True on a match; a wrong password or a malformed hash is just False."""
    try:
        return _current_hasher().verify(password_hash, password)
    except (argon2.exceptions.VerifyMismatchError, argon2.exceptions.InvalidHashError):
        return False


def needs_rehash(password_hash: str) -> bool:
    return _current_hasher().check_needs_rehash(password_hash)
