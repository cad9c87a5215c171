"""Shared test fixtures.

Every test gets a fresh SQLite database file (aiosqlite) with the schema
created from the ORM models. Redis is never initialized, so the rate limiter
passes requests through.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.auth.jwt import create_session_token
from challenge_suite.auth.service import register_user
from challenge_suite.config import get_settings
from challenge_suite.database import close_db, create_schema, get_session, init_db
from challenge_suite.db.models import Challenge, Submission, User
from challenge_suite.main import create_app

TEST_PASSWORD = "correct-horse-42"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Point settings at a throwaway database and drop any real media host config."""
    monkeypatch.setenv("CS_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("CS_ENVIRONMENT", "test")
    monkeypatch.setenv("CS_LOG_FORMAT", "console")
    monkeypatch.setenv("CS_SESSION_SECRET", "test-session-secret-0123456789abcdef")
    monkeypatch.setenv("CS_PASSWORD_MEMORY_COST_KIB", "8192")
    for name in ("CS_CLOUDINARY_URL", "CS_CLOUDINARY_CLOUD_NAME", "CS_CLOUDINARY_API_KEY", "CS_CLOUDINARY_API_SECRET"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Initialize the engine and create all tables."""
    await init_db(get_settings().database_url)
    await create_schema()
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for setup and assertions."""
    async for session in get_session():
        yield session


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against a freshly created app (no lifespan; the fixtures own the DB)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


async def create_user(db: AsyncSession, username: str, role: str = "user") -> User:
    user = await register_user(
        db,
        name=username.title(),
        email=f"{username}@example.com",
        username=username,
        password=TEST_PASSWORD,
        role=role,
    )
    await db.commit()
    return user


async def create_challenge(db: AsyncSession, creator: User, **overrides: object) -> Challenge:
    now = datetime.now(timezone.utc)
    values: dict[str, object] = {
        "title": "Thirty Day Sketchbook",
        "description": "Draw something every day for thirty days.",
        "category": "Creative",
        "image": "https://img.example.com/sketch.png",
        "status": "active",
        "start_date": now - timedelta(days=1),
        "end_date": now + timedelta(days=29),
        "created_by": creator.id,
    }
    values.update(overrides)
    challenge = Challenge(**values)
    db.add(challenge)
    await db.commit()
    return challenge


async def create_submission(db: AsyncSession, challenge: Challenge, author: User, votes: int = 0) -> Submission:
    submission = Submission(
        challenge_id=challenge.id,
        user_id=author.id,
        title=f"{author.username} entry",
        media_url="https://img.example.com/entry.png",
        media_type="image",
        votes=votes,
    )
    db.add(submission)
    await db.commit()
    return submission


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(user.id, user.role)}"}


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    return bearer


@pytest_asyncio.fixture
async def alice(db_session: AsyncSession) -> User:
    return await create_user(db_session, "alice")


@pytest_asyncio.fixture
async def bob(db_session: AsyncSession) -> User:
    return await create_user(db_session, "bob")


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await create_user(db_session, "root_admin", role="admin")


@pytest_asyncio.fixture
async def creator(db_session: AsyncSession) -> User:
    return await create_user(db_session, "maker", role="creator")


@pytest_asyncio.fixture
async def challenge(db_session: AsyncSession, creator: User) -> Challenge:
    return await create_challenge(db_session, creator)


@pytest_asyncio.fixture
async def submission(db_session: AsyncSession, challenge: Challenge, bob: User) -> Submission:
    """A submission by bob on the active challenge."""
    return await create_submission(db_session, challenge, bob)
