"""Comments and follows over HTTP."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from challenge_suite.db.models import Submission, User

pytestmark = pytest.mark.asyncio


class TestComments:
    async def test_add_list_delete(self, client: AsyncClient, submission: Submission, alice: User, auth_headers):
        resp = await client.post(
            "/api/v1/comments",
            json={"submissionId": submission.id, "content": "  Lovely colours!  "},
            headers=auth_headers(alice),
        )
        assert resp.status_code == 201
        comment = resp.json()["comment"]
        assert comment["content"] == "Lovely colours!"
        assert comment["user"]["username"] == "alice"

        resp = await client.get("/api/v1/comments", params={"submissionId": submission.id})
        assert [c["id"] for c in resp.json()["comments"]] == [comment["id"]]

        resp = await client.delete("/api/v1/comments", params={"id": comment["id"]}, headers=auth_headers(alice))
        assert resp.status_code == 200
        resp = await client.get("/api/v1/comments", params={"submissionId": submission.id})
        assert resp.json() == {"comments": []}

    async def test_only_author_deletes(
        self, client: AsyncClient, submission: Submission, alice: User, bob: User, auth_headers
    ):
        resp = await client.post(
            "/api/v1/comments", json={"submissionId": submission.id, "content": "Mine"}, headers=auth_headers(alice)
        )
        comment_id = resp.json()["comment"]["id"]

        resp = await client.delete("/api/v1/comments", params={"id": comment_id}, headers=auth_headers(bob))
        assert resp.status_code == 403
        assert resp.json() == {"error": "You can only delete your own comments"}

    async def test_empty_content(self, client: AsyncClient, submission: Submission, alice: User, auth_headers):
        resp = await client.post(
            "/api/v1/comments", json={"submissionId": submission.id, "content": "   "}, headers=auth_headers(alice)
        )
        assert resp.status_code == 400

    async def test_unknown_submission(self, client: AsyncClient, alice: User, auth_headers):
        resp = await client.post(
            "/api/v1/comments", json={"submissionId": 31337, "content": "Hello"}, headers=auth_headers(alice)
        )
        assert resp.status_code == 404

    async def test_list_requires_submission_id(self, client: AsyncClient, database):
        resp = await client.get("/api/v1/comments")
        assert resp.status_code == 400
        assert resp.json()["details"][0]["field"] == "query.submissionId"

    async def test_delete_unknown(self, client: AsyncClient, alice: User, auth_headers):
        resp = await client.delete("/api/v1/comments", params={"id": 404}, headers=auth_headers(alice))
        assert resp.status_code == 404


class TestFollows:
    async def test_toggle_and_counts(self, client: AsyncClient, alice: User, bob: User, auth_headers):
        resp = await client.post("/api/v1/follow", json={"userId": bob.id}, headers=auth_headers(alice))
        assert resp.status_code == 201
        assert resp.json()["action"] == "followed"

        resp = await client.get("/api/v1/follow", params={"userId": bob.id})
        assert resp.json() == {"followersCount": 1, "followingCount": 0}

        resp = await client.get("/api/v1/follow", params={"userId": bob.id, "type": "followers"})
        assert [u["username"] for u in resp.json()["data"]] == ["alice"]

        resp = await client.get("/api/v1/follow", params={"userId": alice.id, "type": "following"})
        assert [u["username"] for u in resp.json()["data"]] == ["bob"]

        resp = await client.post("/api/v1/follow", json={"userId": bob.id}, headers=auth_headers(alice))
        assert resp.status_code == 200
        assert resp.json() == {"message": "Unfollowed successfully", "action": "unfollowed"}

        resp = await client.get("/api/v1/follow", params={"userId": bob.id})
        assert resp.json() == {"followersCount": 0, "followingCount": 0}

    async def test_cannot_follow_self(self, client: AsyncClient, alice: User, auth_headers):
        resp = await client.post("/api/v1/follow", json={"userId": alice.id}, headers=auth_headers(alice))
        assert resp.status_code == 400
        assert resp.json() == {"error": "You cannot follow yourself"}

    async def test_unknown_user(self, client: AsyncClient, alice: User, auth_headers):
        resp = await client.post("/api/v1/follow", json={"userId": 8080}, headers=auth_headers(alice))
        assert resp.status_code == 404

    async def test_counts_on_profile(self, client: AsyncClient, alice: User, bob: User, auth_headers):
        await client.post("/api/v1/follow", json={"userId": bob.id}, headers=auth_headers(alice))

        resp = await client.get("/api/v1/users/bob")
        assert resp.json()["followersCount"] == 1
        resp = await client.get("/api/v1/users/alice")
        assert resp.json()["followingCount"] == 1
