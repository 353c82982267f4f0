"""
tests/integration/test_admin_auth.py — Admin login, logout, session check,
and the admin guard on protected endpoints.

Endpoints covered:
  POST   /admin/login
  DELETE /admin/login
  GET    /admin/session
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from .conftest import ADMIN_PASSWORD, admin_headers, admin_token, make_member

TESTING_SECRET = "testing-secret-key-with-enough-length"


def _forge(payload: dict) -> str:
    return jwt.encode(payload, TESTING_SECRET, algorithm="HS256")


# ═══════════════════════════════════════════════════════════════════════════
# POST /admin/login
# ═══════════════════════════════════════════════════════════════════════════

def test_login_returns_token_and_sets_http_only_cookie(client):
    resp = client.post("/api/v1/admin/login", json={"password": ADMIN_PASSWORD})

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["access_token"]
    assert data["expires_at"]

    cookies = resp.headers.getlist("Set-Cookie")
    admin_cookie = next(c for c in cookies if c.startswith("admin-token="))
    assert "HttpOnly" in admin_cookie
    assert "SameSite=Strict" in admin_cookie


def test_login_wrong_password_is_401(client):
    resp = client.post("/api/v1/admin/login", json={"password": "not-the-password"})

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "INVALID_CREDENTIALS"
    assert not any(
        c.startswith("admin-token=") for c in resp.headers.getlist("Set-Cookie")
    )


def test_login_missing_password_is_400(client):
    resp = client.post("/api/v1/admin/login", json={})

    assert resp.status_code == 400
    error = resp.get_json()["error"]
    assert error["code"] == "MISSING_FIELD"
    assert error["field"] == "password"


# ═══════════════════════════════════════════════════════════════════════════
# GET /admin/session and DELETE /admin/login
# ═══════════════════════════════════════════════════════════════════════════

def test_session_reports_unauthenticated_without_token(client):
    resp = client.get("/api/v1/admin/session")

    assert resp.status_code == 200
    assert resp.get_json()["data"] == {"authenticated": False}


def test_session_reports_authenticated_from_cookie(client):
    admin_token(client)  # the test client keeps the cookie

    resp = client.get("/api/v1/admin/session")

    assert resp.get_json()["data"] == {"authenticated": True}


def test_logout_clears_cookie(client):
    admin_token(client)

    resp = client.delete("/api/v1/admin/login")
    assert resp.status_code == 200

    resp = client.get("/api/v1/admin/session")
    assert resp.get_json()["data"] == {"authenticated": False}


# ═══════════════════════════════════════════════════════════════════════════
# Admin guard
# ═══════════════════════════════════════════════════════════════════════════

def test_admin_endpoint_without_token_is_401(client):
    resp = client.get("/api/v1/members/")

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "ADMIN_AUTH_REQUIRED"


def test_admin_endpoint_accepts_cookie(client):
    admin_token(client)

    resp = client.get("/api/v1/members/")

    assert resp.status_code == 200


def test_rejected_mutation_leaves_no_state(app, client):
    resp = client.post("/api/v1/members/", json={"name": "mallory"})
    assert resp.status_code == 401

    admin_client = app.test_client()
    token = admin_token(admin_client)
    members = admin_client.get("/api/v1/members/", headers=admin_headers(token))
    assert members.get_json()["data"] == []


def test_malformed_authorization_header_is_401(client):
    resp = client.get("/api/v1/members/", headers={"Authorization": "Token abc"})

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_INVALID"


def test_tampered_token_is_401(client):
    resp = client.get("/api/v1/members/", headers=admin_headers("not.a.jwt"))

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_INVALID"


def test_expired_token_is_401(client):
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    token = _forge({"role": "admin", "iat": past - timedelta(hours=1), "exp": past})

    resp = client.get("/api/v1/members/", headers=admin_headers(token))

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_EXPIRED"


def test_token_without_admin_role_is_401(client):
    token = _forge({
        "role": "member",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    })

    resp = client.get("/api/v1/members/", headers=admin_headers(token))

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_INVALID"


def test_public_lookup_needs_no_token(app, client):
    token = admin_token(client)
    make_member(client, token, "alice", initial_balance=0)

    anonymous = app.test_client()
    resp = anonymous.get("/api/v1/members/by-name/alice")

    assert resp.status_code == 200
    assert resp.get_json()["data"]["name"] == "alice"
