"""
schemas/transaction_schema.py — Marshmallow schemas for transaction endpoints.

Validation responsibility:
  - This file: types, total_amount > 0 (INVALID_AMOUNT), month shape
    (INVALID_MONTH), description length.
  - services/billing_service.py:
      - SERVICE_NOT_FOUND     (404)
      - NO_ACTIVE_SUBSCRIBERS (422)
      - DUPLICATE_TRANSACTION (409)

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate

from subpool.app.errors import ErrorCode
from subpool.app.models import INT_MAX
from subpool.app.models.transaction import PaymentStatus

# Month number restricted to 01–12. \Z, not $: "$" also matches before a
# trailing newline.
_MONTH_REGEX = r"^[0-9]{4}-(0[1-9]|1[0-2])\Z"


class CreateTransactionSchema(Schema):
    """POST /transactions"""

    service_id = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="service_id must be a positive integer."),
    )

    month = fields.Str(
        required=True,
        validate=validate.Regexp(_MONTH_REGEX, error=ErrorCode.INVALID_MONTH),
    )

    total_amount = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, max=INT_MAX, error=ErrorCode.INVALID_AMOUNT),
    )

    # Omitted → the service derives "<display name> subscription (<month>)".
    description = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=255),
    )


def _validate_status(value: str) -> None:
    if value not in {s.value for s in PaymentStatus}:
        raise ValidationError("status must be 'PENDING' or 'PAID'.")


class TransactionFilterSchema(Schema):
    """GET /transactions query string. Values arrive as strings."""

    service_id = fields.Int(validate=validate.Range(min=1))
    month = fields.Str(
        validate=validate.Regexp(_MONTH_REGEX, error=ErrorCode.INVALID_MONTH),
    )
    status = fields.Str(validate=_validate_status)
