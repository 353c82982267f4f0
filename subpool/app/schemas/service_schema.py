"""
schemas/service_schema.py — Marshmallow schemas for service endpoints.

Validation responsibility:
  - This file: field types, lengths, max_members >= 1.
  - services/roster_service.py:
      - DUPLICATE_SERVICE_NAME (409) — requires DB lookup
      - CAPACITY_BELOW_ACTIVE  (422) — requires counting active subscriptions

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from subpool.app.models import INT_MAX


def _validate_non_empty_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


_display_name_field = dict(
    validate=[
        validate.Length(
            min=1,
            max=100,
            error="Display name must be between 1 and 100 characters.",
        ),
        _validate_non_empty_after_trim,
    ],
)

_max_members_field = dict(
    strict=True,
    validate=validate.Range(
        min=1,
        max=INT_MAX,
        error="max_members must be between {min} and {max}.",
    ),
)


class CreateServiceSchema(Schema):
    """
    POST /services

    `name` is the short identifier (e.g. "spotify"); the service layer
    lower-cases it. `display_name` is what people see.
    """

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=50,
                error="Service name must be between 1 and 50 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    display_name = fields.Str(required=True, **_display_name_field)

    max_members = fields.Int(load_default=1, **_max_members_field)


class UpdateServiceSchema(Schema):
    """PATCH /services/:id — partial update; at least one field required."""

    display_name = fields.Str(**_display_name_field)
    max_members = fields.Int(**_max_members_field)

    @validates_schema
    def require_one_field(self, data, **kwargs):
        if not data:
            raise ValidationError(
                "Provide display_name and/or max_members to update."
            )
