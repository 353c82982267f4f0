"""
services/auth_service.py — Administrator authentication.

Responsibilities:
  - Check the submitted admin password against the configured credential
  - Issue the signed admin token (JWT, HS256, role=admin)
  - Decode and verify an admin token

There is a single administrator and no user table: the credential lives in
configuration.

Credential sources, in order of preference:
  ADMIN_PASSWORD_HASH — bcrypt hash; checked with bcrypt.checkpw
  ADMIN_PASSWORD      — plain value; compared in constant time

Layer rules:
  - current_app.config is used ONLY to read the admin credential and JWT
    settings. No flask.request, no flask.g, no HTTP status knowledge beyond
    the AppError registry.
  - The raw password is never stored and never logged.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from datetime import datetime, timezone

import bcrypt
import jwt
from flask import current_app

from subpool.app.errors import ErrorCode, unauthorized

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


# ── Private helpers ────────────────────────────────────────────────────────

def _password_matches(password: str) -> bool:
    """Constant-time check of `password` against the configured credential."""
    password_hash = current_app.config.get("ADMIN_PASSWORD_HASH") or ""
    if password_hash:
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError:
            # Malformed hash in configuration: nobody can log in.
            logger.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
            return False

    plain = current_app.config.get("ADMIN_PASSWORD") or ""
    if not plain:
        return False
    return hmac.compare_digest(password.encode("utf-8"), plain.encode("utf-8"))


def _create_admin_token() -> tuple[str, datetime]:
    """
    Creates a signed admin token.
    Payload: role, iat, exp, jti. Algorithm from JWT_ALGORITHM (HS256).
    """
    now = datetime.now(timezone.utc)
    expiry = now + current_app.config["ADMIN_TOKEN_EXPIRES"]
    payload = {
        "role": ADMIN_ROLE,
        "iat": now,
        "exp": expiry,
        # Each issued token is unique even within the same second.
        "jti": secrets.token_hex(8),
    }
    token = jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )
    return token, expiry


# ── Public service functions ───────────────────────────────────────────────

def login_admin(password: str) -> dict:
    """
    Validates the admin password and issues an admin token.

    Raises:
      AppError(INVALID_CREDENTIALS, 401)

    Returns: {"access_token": str, "expires_at": iso str}
    """
    if not _password_matches(password):
        logger.warning("Rejected admin login attempt")
        raise unauthorized(
            ErrorCode.INVALID_CREDENTIALS,
            "The admin password is incorrect.",
        )

    token, expiry = _create_admin_token()
    return {
        "access_token": token,
        "expires_at": expiry.isoformat(),
    }


def verify_admin_token(raw_token: str) -> dict:
    """
    Decodes an admin token and checks its role claim.

    Raises:
      AppError(TOKEN_EXPIRED, 401)
      AppError(TOKEN_INVALID, 401) — bad signature, malformed, or wrong role

    Returns the decoded payload.
    """
    try:
        payload = jwt.decode(
            raw_token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except jwt.ExpiredSignatureError:
        raise unauthorized(
            ErrorCode.TOKEN_EXPIRED,
            "The admin session has expired. Log in again.",
        )
    except jwt.InvalidTokenError:
        raise unauthorized(
            ErrorCode.TOKEN_INVALID,
            "The admin token is invalid or has been tampered with.",
        )

    if payload.get("role") != ADMIN_ROLE:
        raise unauthorized(
            ErrorCode.TOKEN_INVALID,
            "The token does not carry administrator rights.",
        )
    return payload
