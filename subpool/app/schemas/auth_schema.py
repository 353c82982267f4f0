"""
schemas/auth_schema.py — Marshmallow schema for the admin login endpoint.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class AdminLoginSchema(Schema):
    """
    POST /admin/login

    Only presence is checked here. Whether the password is right is decided
    in services/auth_service.py (INVALID_CREDENTIALS, 401), so the error never
    reveals anything about the configured credential.
    """

    password = fields.Str(
        required=True,
        validate=validate.Length(min=1, error="Password must not be empty."),
    )
