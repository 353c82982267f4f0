"""
tests/integration/test_error_envelope.py — Every failure uses the same
{"error": {"code", "message", "field"?}} shape and never leaks internals.
"""

from __future__ import annotations

from unittest.mock import patch

from subpool.app.errors import ErrorCode

from .conftest import admin_headers, make_member


def test_unknown_url_is_json_404(client):
    resp = client.get("/api/v1/nothing-here")

    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "RESOURCE_NOT_FOUND"


def test_wrong_method_keeps_its_status(client):
    resp = client.put("/api/v1/admin/session")

    assert resp.status_code == 405
    code = resp.get_json()["error"]["code"]
    assert code == "METHOD_NOT_ALLOWED"
    assert code in vars(ErrorCode).values()


def test_malformed_json_is_400(client, token):
    resp = client.post(
        "/api/v1/members/",
        data="{not json",
        content_type="application/json",
        headers=admin_headers(token),
    )

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "INVALID_FIELD"


def test_success_envelope_has_empty_warnings(client, token):
    resp = client.get("/api/v1/services/", headers=admin_headers(token))

    assert resp.get_json() == {"data": [], "warnings": []}


def test_unexpected_error_is_generic_500(client, token):
    make_member(client, token, "alice")

    with patch(
        "subpool.app.services.ledger_service.list_members",
        side_effect=RuntimeError("db password is hunter2"),
    ):
        resp = client.get("/api/v1/members/", headers=admin_headers(token))

    assert resp.status_code == 500
    error = resp.get_json()["error"]
    assert error["code"] == "INTERNAL_ERROR"
    assert "hunter2" not in error["message"]
