"""
middleware/auth_middleware.py — Admin authentication.

The admin token is read from, in order:
  1. Authorization: Bearer <token>
  2. the admin cookie (ADMIN_COOKIE_NAME, default "admin-token")

is_admin_request() answers the yes/no question for the current request.
@require_admin refuses the request with 401 before the view (and therefore
any service or database write) runs.

Error codes:
  ADMIN_AUTH_REQUIRED (401) — no token at all
  TOKEN_INVALID       (401) — malformed header, bad signature, wrong role
  TOKEN_EXPIRED       (401) — valid token past its exp claim
"""

from __future__ import annotations

import functools
from typing import Callable

from flask import current_app, g, request

from subpool.app.errors import AppError, ErrorCode, unauthorized
from subpool.app.services import auth_service


def require_admin(f: Callable) -> Callable:
    """
    Route decorator that enforces admin authentication.

    Sets flask.g.is_admin = True on success. Raises AppError on failure;
    the global error handler renders it.

    Usage:
        @services_bp.route("/", methods=["POST"])
        @require_admin
        def create_service():
            ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_admin()
        return f(*args, **kwargs)

    return decorated


def is_admin_request() -> bool:
    """True if the current request carries a valid admin token."""
    try:
        _authenticate_admin()
    except AppError:
        return False
    return True


def _extract_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header:
        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise unauthorized(
                ErrorCode.TOKEN_INVALID,
                "Authorization header must be in the format: Bearer <token>.",
            )
        return parts[1]

    cookie_name = current_app.config.get("ADMIN_COOKIE_NAME", "admin-token")
    return request.cookies.get(cookie_name) or None


def _authenticate_admin() -> None:
    """
    Performs the admin authentication sequence and sets flask.g.is_admin.

    Separated from the decorator so it can be called directly in tests.
    """
    raw_token = _extract_token()
    if raw_token is None:
        raise unauthorized(
            ErrorCode.ADMIN_AUTH_REQUIRED,
            "Admin authentication required.",
        )

    auth_service.verify_admin_token(raw_token)
    g.is_admin = True
