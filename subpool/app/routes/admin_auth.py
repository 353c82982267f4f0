"""
routes/admin_auth.py — Administrator login/logout route handlers.

Layer rules:
  - Parse, validate, call ONE service, return envelope.
  - No business logic. No DB access: the admin credential lives in config.

The token is returned in the body for API clients AND set as an HttpOnly
cookie for the browser UI. Either one authenticates later requests
(see middleware/auth_middleware.py).

Endpoints (url_prefix=/api/v1/admin):
  POST   /admin/login    → 200  log in, set cookie
  DELETE /admin/login    → 200  log out, clear cookie
  GET    /admin/session  → 200  {"authenticated": bool} (public)
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from subpool.app.middleware.auth_middleware import is_admin_request
from subpool.app.schemas.auth_schema import AdminLoginSchema
from subpool.app.services import auth_service

admin_auth_bp = Blueprint("admin_auth", __name__)


@admin_auth_bp.route("/login", methods=["POST"])
def login():
    """POST /admin/login — Check the admin password; issue token + cookie."""
    data = AdminLoginSchema().load(request.get_json(force=True) or {})
    result = auth_service.login_admin(password=data["password"])

    response = jsonify({"data": result, "warnings": []})
    response.set_cookie(
        current_app.config["ADMIN_COOKIE_NAME"],
        result["access_token"],
        max_age=int(current_app.config["ADMIN_TOKEN_EXPIRES"].total_seconds()),
        httponly=True,
        secure=current_app.config.get("ADMIN_COOKIE_SECURE", False),
        samesite="Strict",
        path="/",
    )
    return response, 200


@admin_auth_bp.route("/login", methods=["DELETE"])
def logout():
    """DELETE /admin/login — Clear the admin cookie. Tokens are stateless."""
    response = jsonify({"data": {"message": "Logged out successfully."}, "warnings": []})
    response.delete_cookie(current_app.config["ADMIN_COOKIE_NAME"], path="/")
    return response, 200


@admin_auth_bp.route("/session", methods=["GET"])
def session_status():
    """GET /admin/session — Whether the caller holds a valid admin token."""
    return jsonify({"data": {"authenticated": is_admin_request()}, "warnings": []}), 200
