"""
schemas/member_schema.py — Marshmallow schemas for member endpoints.

Validation responsibility:
  - This file: field types, name length, non-empty-after-trim, positive
    deposit amounts (INVALID_AMOUNT) and the
    Integer column range for every amount.
  - services/ledger_service.py:
      - DUPLICATE_MEMBER_NAME (409) — requires DB lookup
      - MEMBER_NOT_FOUND      (404) — requires DB lookup

All money is an integer count of the smallest currency unit. Floats such as
10.5 are rejected (strict=True), never rounded.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, post_load, validate

from subpool.app.errors import ErrorCode
from subpool.app.models import INT_MAX


def _validate_non_empty_after_trim(value: str) -> None:
    """Mirrors the DB CHECK(LENGTH(TRIM(name)) > 0) constraint."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreateMemberSchema(Schema):
    """
    POST /members

    initial_balance may be negative: it records debt carried over from
    before the member joined the pool.
    """

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Member name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    initial_balance = fields.Int(
        strict=True,
        load_default=0,
        validate=validate.Range(min=-INT_MAX, max=INT_MAX, error=ErrorCode.INVALID_AMOUNT),
    )

    @post_load
    def strip_name(self, data, **kwargs):
        data["name"] = data["name"].strip()
        return data


class DepositSchema(Schema):
    """POST /members/:id/deposits"""

    # The message is the error code itself; the ValidationError handler
    # in app/__init__.py maps it to INVALID_AMOUNT.
    amount = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, max=INT_MAX, error=ErrorCode.INVALID_AMOUNT),
    )
