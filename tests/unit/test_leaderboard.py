"""Leaderboard aggregator unit tests: upsert-increment, mirroring, ranking."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.db.models import Challenge, LeaderboardEntry, User
from challenge_suite.errors import NotFoundError
from challenge_suite.gamification.leaderboard_service import get_leaderboard, record_points
from conftest import create_user


async def _stats(db: AsyncSession, user_id: int) -> tuple[int, int]:
    row = (await db.execute(select(User.total_points, User.challenges_won).where(User.id == user_id))).one()
    return row.total_points, row.challenges_won


async def _entry_count(db: AsyncSession, user_id: int) -> int:
    return await db.scalar(
        select(func.count()).select_from(LeaderboardEntry).where(LeaderboardEntry.user_id == user_id)
    )


@pytest.mark.asyncio
class TestRecordPoints:
    async def test_global_entry_created_and_mirrored(self, db_session: AsyncSession, alice: User):
        entry = await record_points(db_session, alice.id, None, 50, 1)
        await db_session.commit()

        assert entry.challenge_id is None
        assert (entry.points, entry.wins) == (50, 1)
        assert await _stats(db_session, alice.id) == (50, 1)

    async def test_repeated_calls_increment_one_entry(self, db_session: AsyncSession, alice: User):
        await record_points(db_session, alice.id, None, 50)
        await record_points(db_session, alice.id, None, 10)
        entry = await record_points(db_session, alice.id, None, -5, 2)
        await db_session.commit()

        assert (entry.points, entry.wins) == (55, 2)
        assert await _entry_count(db_session, alice.id) == 1
        assert await _stats(db_session, alice.id) == (55, 2)

    async def test_challenge_entry_is_separate_and_not_mirrored(
        self, db_session: AsyncSession, challenge: Challenge, alice: User
    ):
        await record_points(db_session, alice.id, None, 50)
        entry = await record_points(db_session, alice.id, challenge.id, 30, 1)
        await db_session.commit()

        assert entry.challenge_id == challenge.id
        assert (entry.points, entry.wins) == (30, 1)
        assert await _entry_count(db_session, alice.id) == 2
        assert await _stats(db_session, alice.id) == (50, 0)

    async def test_unknown_user_or_challenge(self, db_session: AsyncSession, alice: User):
        with pytest.raises(NotFoundError):
            await record_points(db_session, 999, None, 10)
        with pytest.raises(NotFoundError):
            await record_points(db_session, alice.id, 999, 10)


@pytest.mark.asyncio
class TestGetLeaderboard:
    async def test_order_and_ranks(self, db_session: AsyncSession):
        users = [await create_user(db_session, name) for name in ("ann", "ben", "cat", "dan")]
        await record_points(db_session, users[0].id, None, 100, 0)
        await record_points(db_session, users[1].id, None, 200, 0)
        await record_points(db_session, users[2].id, None, 100, 3)
        await record_points(db_session, users[3].id, None, 100, 0)
        await db_session.commit()

        ranked, total = await get_leaderboard(db_session, None, page=1, limit=10)

        assert total == 4
        assert [(rank, entry.user.username) for rank, entry in ranked] == [
            (1, "ben"),
            (2, "cat"),
            (3, "ann"),  # ties on points and wins fall back to the older entry
            (4, "dan"),
        ]

    async def test_rank_offsets_by_page(self, db_session: AsyncSession):
        for i in range(5):
            user = await create_user(db_session, f"player{i}")
            await record_points(db_session, user.id, None, 100 - i)
        await db_session.commit()

        ranked, total = await get_leaderboard(db_session, None, page=2, limit=2)

        assert total == 5
        assert [rank for rank, _ in ranked] == [3, 4]
        assert [entry.points for _, entry in ranked] == [98, 97]

    async def test_challenge_board_excludes_global(
        self, db_session: AsyncSession, challenge: Challenge, alice: User, bob: User
    ):
        await record_points(db_session, alice.id, None, 500)
        await record_points(db_session, bob.id, challenge.id, 20)
        await db_session.commit()

        ranked, total = await get_leaderboard(db_session, challenge.id)

        assert total == 1
        assert ranked[0][1].user_id == bob.id
