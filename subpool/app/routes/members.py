"""
routes/members.py — Member ledger route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (url_prefix=/api/v1/members), admin unless noted:
  POST   /members                    → 201  onboard member
  GET    /members                    → 200  overview with unpaid totals
  GET    /members/:id                → 200  member record
  GET    /members/:id/unpaid         → 200  unpaid summary
  POST   /members/:id/deposits       → 201  credit balance
  GET    /members/by-name/:name      → 200  unpaid summary (public)
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from subpool.app.extensions import db
from subpool.app.middleware.auth_middleware import require_admin
from subpool.app.schemas.member_schema import CreateMemberSchema, DepositSchema
from subpool.app.services import ledger_service

members_bp = Blueprint("members", __name__)


@members_bp.route("/", methods=["POST"])
@require_admin
def create_member():
    """POST /members — Onboard a member, optionally with an opening balance."""
    data = CreateMemberSchema().load(request.get_json(force=True) or {})
    result = ledger_service.create_member(
        name=data["name"],
        initial_balance=data["initial_balance"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@members_bp.route("/", methods=["GET"])
@require_admin
def list_members():
    """GET /members — Every member with unpaid totals and active subscriptions."""
    result = ledger_service.list_members(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@members_bp.route("/<int:member_id>", methods=["GET"])
@require_admin
def get_member(member_id: int):
    result = ledger_service.get_member(member_id=member_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@members_bp.route("/<int:member_id>/unpaid", methods=["GET"])
@require_admin
def get_unpaid_summary(member_id: int):
    """GET /members/:id/unpaid — PENDING shares and total owed."""
    result = ledger_service.get_unpaid_summary(member_id=member_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@members_bp.route("/<int:member_id>/deposits", methods=["POST"])
@require_admin
def deposit(member_id: int):
    """POST /members/:id/deposits — Add money to a member's balance."""
    data = DepositSchema().load(request.get_json(force=True) or {})
    result = ledger_service.deposit(
        member_id=member_id,
        amount=data["amount"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@members_bp.route("/by-name/<string:name>", methods=["GET"])
def get_unpaid_summary_by_name(name: str):
    """GET /members/by-name/:name — Public: what a member currently owes."""
    result = ledger_service.get_unpaid_summary_by_name(name=name, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200
