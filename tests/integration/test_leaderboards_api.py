"""Badge catalogue, leaderboards and the admin reconciliation endpoint."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from challenge_suite.db.models import Challenge, Submission, User
from challenge_suite.gamification.badges import BADGES
from challenge_suite.gamification.leaderboard_service import record_points
from conftest import create_submission, create_user

pytestmark = pytest.mark.asyncio


class TestBadgeCatalogue:
    async def test_lists_every_badge(self, client: AsyncClient, database):
        resp = await client.get("/api/v1/badges")
        assert resp.status_code == 200
        ids = [b["id"] for b in resp.json()["badges"]]
        assert ids == [b.id for b in BADGES]


class TestLeaderboards:
    async def test_global_ranking(self, client: AsyncClient, db_session, alice: User, bob: User):
        await record_points(db_session, alice.id, None, 120)
        await record_points(db_session, bob.id, None, 300, wins_delta=1)
        await db_session.commit()

        resp = await client.get("/api/v1/leaderboards")
        assert resp.status_code == 200
        rows = resp.json()["leaderboard"]
        assert [(r["rank"], r["user"]["username"], r["points"]) for r in rows] == [
            (1, "bob", 300),
            (2, "alice", 120),
        ]
        assert rows[0]["wins"] == 1
        assert rows[0]["challenge"] is None

    async def test_challenge_board_is_separate(
        self, client: AsyncClient, db_session, challenge: Challenge, alice: User, bob: User
    ):
        await record_points(db_session, alice.id, challenge.id, 40)
        await record_points(db_session, bob.id, None, 500)
        await db_session.commit()

        resp = await client.get("/api/v1/leaderboards", params={"challengeId": challenge.id})
        rows = resp.json()["leaderboard"]
        assert [r["user"]["username"] for r in rows] == ["alice"]
        assert rows[0]["challenge"] == {"id": challenge.id, "title": challenge.title}

    async def test_pagination_continues_rank(self, client: AsyncClient, db_session):
        for n in range(5):
            user = await create_user(db_session, f"player{n}")
            await record_points(db_session, user.id, None, 100 - n)
        await db_session.commit()

        resp = await client.get("/api/v1/leaderboards", params={"page": 2, "limit": 2})
        data = resp.json()
        assert [r["rank"] for r in data["leaderboard"]] == [3, 4]
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}

    async def test_limit_capped(self, client: AsyncClient, database):
        resp = await client.get("/api/v1/leaderboards", params={"limit": 101})
        assert resp.status_code == 400

    async def test_admin_records_points(self, client: AsyncClient, alice: User, admin: User, auth_headers):
        body = {"userId": alice.id, "points": 25, "wins": 1}
        resp = await client.post("/api/v1/leaderboards", json=body, headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["points"] == 25

        resp = await client.post("/api/v1/leaderboards", json=body, headers=auth_headers(admin))
        data = resp.json()
        assert data["points"] == 50
        assert data["wins"] == 2

        me = await client.get("/api/v1/users/me", headers=auth_headers(alice))
        assert me.json()["stats"]["totalPoints"] == 50
        assert me.json()["stats"]["challengesWon"] == 2

    async def test_record_points_unknown_user(self, client: AsyncClient, admin: User, auth_headers):
        resp = await client.post(
            "/api/v1/leaderboards", json={"userId": 4040, "points": 5}, headers=auth_headers(admin)
        )
        assert resp.status_code == 404

    async def test_non_admin_cannot_record(self, client: AsyncClient, alice: User, auth_headers):
        resp = await client.post(
            "/api/v1/leaderboards", json={"userId": alice.id, "points": 1000}, headers=auth_headers(alice)
        )
        assert resp.status_code == 403
        assert resp.json() == {"error": "Admin access required"}


class TestReconcileEndpoint:
    async def test_repairs_drift(
        self, client: AsyncClient, db_session, challenge: Challenge, bob: User, admin: User, auth_headers
    ):
        drifted = await create_submission(db_session, challenge, bob, votes=3)

        resp = await client.post("/api/v1/admin/reconcile", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json() == {
            "submissionsFixed": 1,
            "usersFixed": 1,
            "entriesBackfilled": 0,
            "badgesAwarded": 1,
        }

        votes = await db_session.scalar(select(Submission.votes).where(Submission.id == drifted.id))
        assert votes == 0
        bob_row = await db_session.scalar(
            select(User).where(User.id == bob.id).execution_options(populate_existing=True)
        )
        assert bob_row.challenges_entered == 1
        assert bob_row.badges_collected == 1

    async def test_admin_only(self, client: AsyncClient, alice: User, auth_headers):
        resp = await client.post("/api/v1/admin/reconcile", headers=auth_headers(alice))
        assert resp.status_code == 403
