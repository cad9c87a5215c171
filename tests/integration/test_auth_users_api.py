"""Registration, login and profile endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from challenge_suite.auth import service as auth_service
from challenge_suite.db.models import Challenge, User
from conftest import TEST_PASSWORD, create_submission

pytestmark = pytest.mark.asyncio

REGISTRATION = {
    "name": "Dana Doe",
    "email": "Dana@Example.com",
    "username": "dana_d",
    "password": "s3cret-pass",
}


class TestRegisterAndLogin:
    async def test_register_returns_session(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/register", json=REGISTRATION)
        assert resp.status_code == 201
        data = resp.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "dana@example.com"
        assert data["user"]["role"] == "user"
        assert data["user"]["stats"] == {
            "totalPoints": 0,
            "badgesCollected": 0,
            "challengesEntered": 0,
            "challengesWon": 0,
        }

        me = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200
        assert me.json()["username"] == "dana_d"

    async def test_duplicate_email_conflicts(self, client: AsyncClient):
        await client.post("/api/v1/auth/register", json=REGISTRATION)
        resp = await client.post("/api/v1/auth/register", json={**REGISTRATION, "username": "other"})
        assert resp.status_code == 409
        assert resp.json() == {"error": "Email already registered"}

    async def test_invalid_body_reports_fields(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/auth/register",
            json={"name": "D", "email": "not-an-email", "username": "dana", "password": "x"},
        )
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "Validation failed"
        fields = {d["field"] for d in data["details"]}
        assert {"body.name", "body.email", "body.password"} <= fields

    async def test_login(self, client: AsyncClient, alice: User):
        resp = await client.post("/api/v1/auth/login", json={"email": "ALICE@example.com", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["user"]["id"] == alice.id

    async def test_login_wrong_password(self, client: AsyncClient, alice: User):
        resp = await client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid email or password"}


class TestSessions:
    async def test_missing_token(self, client: AsyncClient):
        resp = await client.get("/api/v1/users/me")
        assert resp.status_code == 401
        assert "error" in resp.json()

    async def test_garbage_token(self, client: AsyncClient):
        resp = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not.a.token"})
        assert resp.status_code == 401

    async def test_token_for_deleted_user(self, client: AsyncClient, auth_headers):
        ghost = User(id=9999, name="Ghost", email="g@example.com", username="ghost", password_hash="x", role="user")
        resp = await client.get("/api/v1/users/me", headers=auth_headers(ghost))
        assert resp.status_code == 401
        assert resp.json() == {"error": "User not found"}


class TestProfiles:
    async def test_update_profile(self, client: AsyncClient, alice: User, auth_headers):
        resp = await client.patch(
            "/api/v1/users/me",
            json={"bio": "  Painter and runner  ", "avatar": "https://img.example.com/a.png"},
            headers=auth_headers(alice),
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["bio"] == "Painter and runner"
        assert data["avatar"] == "https://img.example.com/a.png"
        assert data["name"] == "Alice"

    async def test_bio_too_long(self, client: AsyncClient, alice: User, auth_headers):
        resp = await client.patch("/api/v1/users/me", json={"bio": "x" * 161}, headers=auth_headers(alice))
        assert resp.status_code == 400

    async def test_public_profile(self, client: AsyncClient, db_session, challenge: Challenge, bob: User):
        submission = await create_submission(db_session, challenge, bob)
        submission.status = "approved"
        await db_session.commit()

        resp = await client.get("/api/v1/users/@BOB")
        assert resp.status_code == 200
        data = resp.json()
        assert data["username"] == "bob"
        assert "email" not in data
        assert data["followersCount"] == 0
        assert [s["id"] for s in data["submissions"]] == [submission.id]

    async def test_unknown_profile(self, client: AsyncClient):
        resp = await client.get("/api/v1/users/nobody")
        assert resp.status_code == 404
        assert resp.json() == {"error": "User not found"}


class TestRegistrationRace:
    async def test_unique_violation_is_409(self, client: AsyncClient, alice: User, monkeypatch: pytest.MonkeyPatch):
        async def no_user(_db, _value):
            return None

        monkeypatch.setattr(auth_service, "get_user_by_email", no_user)
        monkeypatch.setattr(auth_service, "get_user_by_username", no_user)

        resp = await client.post(
            "/api/v1/auth/register",
            json={**REGISTRATION, "email": "alice@example.com", "username": "alice_two"},
        )
        assert resp.status_code == 409
        assert resp.json() == {"error": "Email or username already taken"}
