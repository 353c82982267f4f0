"""
schemas/subscription_schema.py — Marshmallow schema for subscribe/unsubscribe.

Existence, capacity and duplicate checks live in services/roster_service.py.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class SubscriptionSchema(Schema):
    """POST /subscriptions and DELETE /subscriptions — same body."""

    member_id = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="member_id must be a positive integer."),
    )
    service_id = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="service_id must be a positive integer."),
    )


class SubscriptionFilterSchema(Schema):
    """GET /subscriptions query string. Values arrive as strings."""

    member_id = fields.Int(validate=validate.Range(min=1))
    service_id = fields.Int(validate=validate.Range(min=1))
    active = fields.Bool()
