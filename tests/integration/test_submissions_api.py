"""Entering challenges over HTTP and the counters it moves."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from challenge_suite.db.models import Challenge, ChallengeParticipation, LeaderboardEntry, User, UserBadge
from conftest import create_challenge, create_submission, create_user

pytestmark = pytest.mark.asyncio


def _entry(challenge_id: int, **overrides):
    body = {
        "challengeId": challenge_id,
        "title": "My first sketch",
        "mediaUrl": "https://img.example.com/sketch-1.png",
        "mediaType": "image",
    }
    body.update(overrides)
    return body


class TestCreateSubmission:
    async def test_submit(self, client: AsyncClient, db_session, challenge: Challenge, alice: User, auth_headers):
        resp = await client.post("/api/v1/submissions", json=_entry(challenge.id), headers=auth_headers(alice))

        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Submission created successfully"
        data = body["submission"]
        assert data["votes"] == 0
        assert data["status"] == "pending"
        assert data["user"]["username"] == "alice"
        assert data["challenge"]["id"] == challenge.id

        participants = await db_session.scalar(select(Challenge.participants).where(Challenge.id == challenge.id))
        assert participants == 1

        user = await db_session.scalar(
            select(User).where(User.id == alice.id).execution_options(populate_existing=True)
        )
        assert user.challenges_entered == 1
        assert user.total_points == 50

        participation = await db_session.scalar(
            select(ChallengeParticipation.status).where(
                ChallengeParticipation.user_id == alice.id,
                ChallengeParticipation.challenge_id == challenge.id,
            )
        )
        assert participation == "completed"

        entries = [
            tuple(row)
            for row in await db_session.execute(
                select(LeaderboardEntry.challenge_id, LeaderboardEntry.points).where(
                    LeaderboardEntry.user_id == alice.id
                )
            )
        ]
        assert sorted(entries, key=lambda row: row[0] or 0) == [(None, 50), (challenge.id, 50)]

    async def test_second_submission_conflicts(
        self, client: AsyncClient, challenge: Challenge, alice: User, auth_headers
    ):
        first = await client.post("/api/v1/submissions", json=_entry(challenge.id), headers=auth_headers(alice))
        assert first.status_code == 201

        resp = await client.post(
            "/api/v1/submissions", json=_entry(challenge.id, title="Another try"), headers=auth_headers(alice)
        )
        assert resp.status_code == 409
        assert resp.json() == {"error": "You have already submitted to this challenge"}

    async def test_ended_challenge(self, client: AsyncClient, db_session, creator: User, alice: User, auth_headers):
        ended = await create_challenge(db_session, creator, status="ended")
        resp = await client.post("/api/v1/submissions", json=_entry(ended.id), headers=auth_headers(alice))
        assert resp.status_code == 400
        assert resp.json()["error"] == "Challenge has ended. Submissions are no longer accepted."

    async def test_full_challenge(
        self, client: AsyncClient, db_session, creator: User, alice: User, auth_headers
    ):
        full = await create_challenge(db_session, creator, max_participants=1, participants=1)
        resp = await client.post("/api/v1/submissions", json=_entry(full.id), headers=auth_headers(alice))
        assert resp.status_code == 400
        assert resp.json()["error"] == "Challenge is full"

    async def test_unknown_challenge(self, client: AsyncClient, alice: User, auth_headers):
        resp = await client.post("/api/v1/submissions", json=_entry(987654), headers=auth_headers(alice))
        assert resp.status_code == 404

    async def test_bad_media_type(self, client: AsyncClient, challenge: Challenge, alice: User, auth_headers):
        resp = await client.post(
            "/api/v1/submissions", json=_entry(challenge.id, mediaType="audio"), headers=auth_headers(alice)
        )
        assert resp.status_code == 400
        assert resp.json()["details"][0]["field"] == "body.mediaType"

    async def test_requires_session(self, client: AsyncClient, challenge: Challenge):
        resp = await client.post("/api/v1/submissions", json=_entry(challenge.id))
        assert resp.status_code == 401


class TestListSubmissions:
    async def test_ordered_by_votes(self, client: AsyncClient, db_session, challenge: Challenge, alice: User):
        carol = await create_user(db_session, "carol")
        low = await create_submission(db_session, challenge, alice, votes=1)
        high = await create_submission(db_session, challenge, carol, votes=7)

        resp = await client.get("/api/v1/submissions", params={"challengeId": challenge.id})
        assert resp.status_code == 200
        data = resp.json()
        assert [s["id"] for s in data["submissions"]] == [high.id, low.id]
        assert data["pagination"]["total"] == 2

    async def test_filter_by_user(self, client: AsyncClient, db_session, challenge: Challenge, alice: User, bob: User):
        mine = await create_submission(db_session, challenge, alice)
        await create_submission(db_session, challenge, bob)

        resp = await client.get("/api/v1/submissions", params={"userId": alice.id})
        assert [s["id"] for s in resp.json()["submissions"]] == [mine.id]


class TestSubmissionBadges:
    async def test_first_submission_badge_awarded(
        self, client: AsyncClient, db_session, challenge: Challenge, alice: User, auth_headers
    ):
        resp = await client.post("/api/v1/submissions", json=_entry(challenge.id), headers=auth_headers(alice))
        assert resp.status_code == 201

        badges = (await db_session.scalars(select(UserBadge.badge_id).where(UserBadge.user_id == alice.id))).all()
        assert badges == ["first-submission"]

        me = await client.get("/api/v1/users/me", headers=auth_headers(alice))
        data = me.json()
        assert data["stats"]["badgesCollected"] == 1
        assert [b["id"] for b in data["badges"]] == ["first-submission"]
