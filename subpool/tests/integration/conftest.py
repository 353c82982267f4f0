"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against the TestingConfig database: in-memory SQLite unless
    TEST_DATABASE_URL points at a real PostgreSQL database.
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - admin_token(client)              → admin access token (also sets the cookie)
  - admin_headers(token)             → {"Authorization": "Bearer <token>"}
  - make_member(client, token, ...)  → member dict
  - make_service(client, token, ...) → service dict
  - subscribe(...)                   → HTTP response
  - deposit(...)                     → HTTP response
  - make_transaction(...)            → HTTP response
  - process_payments(...)            → HTTP response

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from subpool.app import create_app
from subpool.app.extensions import db as _db

ADMIN_PASSWORD = "admin-test-password"


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once per test session."""
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """
    Deletes all rows after every test.

    Delete order respects FK constraints: participants before transactions,
    transactions and subscriptions before services and members.
    """
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM transaction_participants"))
            conn.execute(text("DELETE FROM transactions"))
            conn.execute(text("DELETE FROM subscriptions"))
            conn.execute(text("DELETE FROM services"))
            conn.execute(text("DELETE FROM members"))
            conn.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


@pytest.fixture
def token(client):
    """Admin token for the function-scoped client."""
    return admin_token(client)


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def admin_token(client, password: str = ADMIN_PASSWORD) -> str:
    """Logs in as admin and returns the access token."""
    resp = client.post("/api/v1/admin/login", json={"password": password})
    assert resp.status_code == 200, f"admin login failed: {resp.get_json()}"
    return resp.get_json()["data"]["access_token"]


def admin_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def make_member(client, token: str, name: str = "alice", initial_balance: int = 0) -> dict:
    resp = client.post(
        "/api/v1/members/",
        json={"name": name, "initial_balance": initial_balance},
        headers=admin_headers(token),
    )
    assert resp.status_code == 201, f"make_member failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_service(
    client,
    token: str,
    name: str = "spotify",
    display_name: str = "Spotify Premium",
    max_members: int = 6,
) -> dict:
    resp = client.post(
        "/api/v1/services/",
        json={"name": name, "display_name": display_name, "max_members": max_members},
        headers=admin_headers(token),
    )
    assert resp.status_code == 201, f"make_service failed: {resp.get_json()}"
    return resp.get_json()["data"]


def subscribe(client, token: str, member_id: int, service_id: int):
    return client.post(
        "/api/v1/subscriptions/",
        json={"member_id": member_id, "service_id": service_id},
        headers=admin_headers(token),
    )


def deposit(client, token: str, member_id: int, amount: int):
    return client.post(
        f"/api/v1/members/{member_id}/deposits",
        json={"amount": amount},
        headers=admin_headers(token),
    )


def make_transaction(client, token: str, service_id: int, month: str, total_amount: int):
    return client.post(
        "/api/v1/transactions/",
        json={"service_id": service_id, "month": month, "total_amount": total_amount},
        headers=admin_headers(token),
    )


def process_payments(client, token: str, transaction_id: int):
    return client.post(
        f"/api/v1/transactions/{transaction_id}/process-payments",
        headers=admin_headers(token),
    )


def member_balance(client, token: str, member_id: int) -> int:
    resp = client.get(f"/api/v1/members/{member_id}", headers=admin_headers(token))
    assert resp.status_code == 200
    return resp.get_json()["data"]["balance"]


def billed_service(client, token: str, members: list[tuple[str, int]], max_members: int = 6):
    """
    Creates a service and subscribes one new member per (name, balance) pair.
    Returns (service, [member, ...]).
    """
    service = make_service(client, token, max_members=max_members)
    created = []
    for name, balance in members:
        member = make_member(client, token, name, initial_balance=balance)
        assert subscribe(client, token, member["id"], service["id"]).status_code == 201
        created.append(member)
    return service, created
