"""Unit tests for auth API router (marknote/api/auth.py)."""

import uuid
from typing import Any

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from marknote.core.services.auth_service import AuthService
from marknote.main import app
from marknote.middleware.auth import get_current_user_id

USER_ID = uuid.uuid4()


@pytest.fixture
def client() -> TestClient:
    yield TestClient(app)
    app.dependency_overrides.clear()


def _json_ok(resp) -> dict[str, Any]:
    assert resp.status_code in (200, 201)
    return resp.json()


def _token_response(email: str) -> dict[str, Any]:
    return {
        "access_token": "at",
        "token_type": "bearer",
        "expires_in": 604800,
        "user": {
            "id": str(USER_ID),
            "name": "Ada",
            "email": email,
            "created_at": "2026-01-01T00:00:00Z",
        },
    }


def test_register_calls_service(monkeypatch, client):
    called = {}

    async def fake_register_user(self, request):
        called["request"] = request
        return _token_response(request.email)

    monkeypatch.setattr(AuthService, "register_user", fake_register_user, raising=True)

    payload = {"name": "Ada", "email": "Ada@Example.com", "password": "Secur3Pass!"}
    resp = client.post("/api/auth/register", json=payload)

    assert resp.status_code == 201
    assert resp.json()["user"]["email"] == "ada@example.com"
    assert called["request"].email == "ada@example.com"


@pytest.mark.parametrize(
    "password",
    ["Sh0rt!", "alllowercase1!", "NoDigitsHere!", "NoSpecial123"],
)
def test_register_enforces_password_policy(monkeypatch, client, password):
    async def fail(self, request):  # pragma: no cover - must not be reached
        raise AssertionError("service called")

    monkeypatch.setattr(AuthService, "register_user", fail, raising=True)

    resp = client.post(
        "/api/auth/register", json={"name": "Ada", "email": "ada@example.com", "password": password}
    )
    assert resp.status_code == 422


def test_register_duplicate_email(monkeypatch, client):
    async def fake_register_user(self, request):
        raise HTTPException(status_code=400, detail="User already exists")

    monkeypatch.setattr(AuthService, "register_user", fake_register_user, raising=True)

    resp = client.post(
        "/api/auth/register",
        json={"name": "Ada", "email": "ada@example.com", "password": "Secur3Pass!"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User already exists"


def test_login_calls_service(monkeypatch, client):
    async def fake_auth(self, request):
        return _token_response(request.email)

    monkeypatch.setattr(AuthService, "authenticate_user", fake_auth, raising=True)

    resp = client.post("/api/auth/login", json={"email": "bob@example.com", "password": "x"})
    data = _json_ok(resp)
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "bob@example.com"


def test_login_invalid_credentials(monkeypatch, client):
    async def fake_auth(self, request):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    monkeypatch.setattr(AuthService, "authenticate_user", fake_auth, raising=True)

    resp = client.post("/api/auth/login", json={"email": "bob@example.com", "password": "nope"})
    assert resp.status_code == 401


def test_me_requires_token(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401


def test_me_returns_profile(monkeypatch, client):
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID

    async def fake_me(self, user_id):
        assert user_id == USER_ID
        return _token_response("ada@example.com")["user"]

    monkeypatch.setattr(AuthService, "get_current_user", fake_me, raising=True)

    data = _json_ok(client.get("/api/auth/me"))
    assert data["id"] == str(USER_ID)


def test_logout_blacklists_bearer_token(monkeypatch, client):
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    seen = {}

    async def fake_logout(self, user_id, token):
        seen["token"] = token
        return True

    monkeypatch.setattr(AuthService, "logout_user", fake_logout, raising=True)

    resp = client.post("/api/auth/logout", headers={"Authorization": "Bearer abc.def.ghi"})
    data = _json_ok(resp)
    assert data["success"] is True
    assert data["data"] == {"token_revoked": True}
    assert seen["token"] == "abc.def.ghi"
