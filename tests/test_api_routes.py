"""
tests/test_api_routes.py — FastAPI Route Integration Tests
===========================================================

Auth guards on RPC and admin endpoints, response shapes of the public
endpoints, and change notification for server-side writes.

The engine dependency is overridden with the in-memory SQLite fixture.
"""

from __future__ import annotations

import jwt
import pytest
from fastapi.testclient import TestClient

from mannxp.api.deps import JWT_ALGORITHM, JWT_SECRET, get_engine
from mannxp.engine.bus import get_default_bus


@pytest.fixture
def client(db_engine):
    """Create a FastAPI TestClient bound to the SQLite test engine."""
    from mannxp.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_token():
    return jwt.encode(
        {"sub": "12345", "username": "TestAdmin", "is_admin": True},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


@pytest.fixture
def user_token():
    return jwt.encode(
        {"sub": "u1", "username": "RegularUser", "is_admin": False},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


@pytest.fixture
def server_events():
    received: list = []
    unsubscribe = get_default_bus().subscribe(received.append)
    yield received
    unsubscribe()


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ===========================================================================
# Health endpoint
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# RPC endpoints
# ===========================================================================
class TestRpc:
    def test_requires_token(self, client):
        resp = client.post("/api/rpc/get_progression", json={"user_id_in": "u1"})
        assert resp.status_code == 401

    def test_rejects_bad_token(self, client):
        resp = client.post(
            "/api/rpc/get_progression",
            json={"user_id_in": "u1"},
            headers=_auth("not-a-jwt"),
        )
        assert resp.status_code == 401

    def test_get_progression_new_user(self, client, user_token):
        resp = client.post(
            "/api/rpc/get_progression", json={"user_id_in": "u1"}, headers=_auth(user_token)
        )
        assert resp.status_code == 200
        assert resp.json() == [{"user_id": "u1", "total_xp": 0}]

    def test_add_xp_to_self(self, client, user_token, server_events):
        resp = client.post(
            "/api/rpc/add_xp",
            json={"user_id_in": "u1", "amount_in": 559},
            headers=_auth(user_token),
        )
        assert resp.status_code == 200
        assert resp.json() == 559
        assert [(e.user_id, e.delta) for e in server_events] == [("u1", 559)]

        resp = client.post(
            "/api/rpc/add_xp",
            json={"user_id_in": "u1", "amount_in": 559},
            headers=_auth(user_token),
        )
        assert resp.json() == 1118

    def test_add_zero_returns_current_total(self, client, user_token, server_events):
        resp = client.post(
            "/api/rpc/add_xp",
            json={"user_id_in": "u1", "amount_in": 0},
            headers=_auth(user_token),
        )
        assert resp.json() == 0
        assert server_events == []

    def test_add_xp_to_other_user_forbidden(self, client, user_token):
        resp = client.post(
            "/api/rpc/add_xp",
            json={"user_id_in": "u2", "amount_in": 10},
            headers=_auth(user_token),
        )
        assert resp.status_code == 403

    def test_admin_may_add_to_anyone(self, client, admin_token):
        resp = client.post(
            "/api/rpc/add_xp",
            json={"user_id_in": "u2", "amount_in": 10},
            headers=_auth(admin_token),
        )
        assert resp.status_code == 200

    def test_negative_amount_rejected(self, client, user_token):
        resp = client.post(
            "/api/rpc/add_xp",
            json={"user_id_in": "u1", "amount_in": -5},
            headers=_auth(user_token),
        )
        assert resp.status_code == 422


# ===========================================================================
# Public endpoints
# ===========================================================================
class TestPublicRoutes:
    def test_progression_shape(self, client):
        resp = client.get("/api/progression/u1")
        assert resp.status_code == 200
        assert resp.json() == {
            "user_id": "u1",
            "xp": 0,
            "level": 1,
            "current_level_xp": 0,
            "next_level_xp": 250,
            "xp_to_next_level": 250,
        }

    def test_summary(self, client, admin_token):
        client.post("/api/admin/xp/u1", json={"amount": 1118}, headers=_auth(admin_token))
        resp = client.get("/api/progression/u1/summary")
        assert resp.status_code == 200
        assert resp.text == "Level 3\nXP: 161/1299 (Total: 1118)\nTo next: 1138"

    def test_leaderboard_order(self, client, admin_token):
        for user_id, amount in (("a", 100), ("b", 1118), ("c", 300)):
            client.post(
                f"/api/admin/xp/{user_id}", json={"amount": amount}, headers=_auth(admin_token)
            )

        resp = client.get("/api/leaderboard", params={"limit": 2})

        assert resp.status_code == 200
        assert resp.json() == [
            {"rank": 1, "user_id": "b", "xp": 1118, "level": 3},
            {"rank": 2, "user_id": "c", "xp": 300, "level": 2},
        ]

    @pytest.mark.parametrize("limit", [0, 101])
    def test_leaderboard_limit_validated(self, client, limit):
        resp = client.get("/api/leaderboard", params={"limit": limit})
        assert resp.status_code == 422


# ===========================================================================
# Admin endpoints
# ===========================================================================
class TestAdminAuthGuards:
    @pytest.mark.parametrize("path", ["/api/admin/xp/u1", "/api/admin/xp/u1/set"])
    def test_no_token_returns_401(self, client, path):
        resp = client.post(path, json={"amount": 10})
        assert resp.status_code == 401

    @pytest.mark.parametrize("path", ["/api/admin/xp/u1", "/api/admin/xp/u1/set"])
    def test_non_admin_returns_403(self, client, user_token, path):
        resp = client.post(path, json={"amount": 10}, headers=_auth(user_token))
        assert resp.status_code == 403


class TestAdminXp:
    def test_add(self, client, admin_token, server_events):
        resp = client.post("/api/admin/xp/u1", json={"amount": 559}, headers=_auth(admin_token))
        assert resp.status_code == 200
        body = resp.json()
        assert body["added"] == 559
        assert body["level"] == 2
        assert body["xp_to_next_level"] == 398
        assert body["message"] == "Added 559 XP. Level 2 (309/707 XP)."
        assert [(e.user_id, e.delta) for e in server_events] == [("u1", 559)]

    def test_negative_add_is_noop(self, client, admin_token, server_events):
        resp = client.post("/api/admin/xp/u1", json={"amount": -5}, headers=_auth(admin_token))
        assert resp.json()["added"] == 0
        assert resp.json()["xp"] == 0
        assert server_events == []

    def test_set_raises_total(self, client, admin_token):
        client.post("/api/admin/xp/u1", json={"amount": 300}, headers=_auth(admin_token))
        resp = client.post(
            "/api/admin/xp/u1/set", json={"amount": 1000}, headers=_auth(admin_token)
        )
        assert resp.json()["added"] == 700
        assert resp.json()["xp"] == 1000

    def test_set_never_decreases(self, client, admin_token, server_events):
        client.post("/api/admin/xp/u1", json={"amount": 300}, headers=_auth(admin_token))
        server_events.clear()
        resp = client.post(
            "/api/admin/xp/u1/set", json={"amount": 100}, headers=_auth(admin_token)
        )
        assert resp.json()["added"] == 0
        assert resp.json()["xp"] == 300
        assert server_events == []
