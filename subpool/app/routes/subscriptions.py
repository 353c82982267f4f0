"""
routes/subscriptions.py — Subscribe/unsubscribe route handlers. Admin only.

Endpoints (url_prefix=/api/v1/subscriptions):
  POST   /subscriptions   → 201  subscribe (or reactivate)
  DELETE /subscriptions   → 200  unsubscribe; body names the pair
  GET    /subscriptions   → 200  list; ?member_id= &service_id= &active=true|false
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from marshmallow import EXCLUDE

from subpool.app.extensions import db
from subpool.app.middleware.auth_middleware import require_admin
from subpool.app.schemas.subscription_schema import (
    SubscriptionFilterSchema,
    SubscriptionSchema,
)
from subpool.app.services import roster_service

subscriptions_bp = Blueprint("subscriptions", __name__)


@subscriptions_bp.route("/", methods=["POST"])
@require_admin
def subscribe():
    data = SubscriptionSchema().load(request.get_json(force=True) or {})
    result = roster_service.subscribe(
        member_id=data["member_id"],
        service_id=data["service_id"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@subscriptions_bp.route("/", methods=["DELETE"])
@require_admin
def unsubscribe():
    """DELETE /subscriptions — Ends the subscription; past transactions are kept."""
    data = SubscriptionSchema().load(request.get_json(force=True) or {})
    result = roster_service.unsubscribe(
        member_id=data["member_id"],
        service_id=data["service_id"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@subscriptions_bp.route("/", methods=["GET"])
@require_admin
def list_subscriptions():
    filters = SubscriptionFilterSchema().load(request.args.to_dict(), unknown=EXCLUDE)
    result = roster_service.list_subscriptions(
        member_id=filters.get("member_id"),
        service_id=filters.get("service_id"),
        active=filters.get("active"),
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
