"""
routes/transactions.py — Billing, settlement and reversal route handlers.
Admin only.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (url_prefix=/api/v1/transactions):
  POST   /transactions                        → 201  bill a service for a month
  GET    /transactions                        → 200  list; ?service_id= &month= &status=
  GET    /transactions/:id                    → 200  detail with participants
  POST   /transactions/:id/process-payments   → 200  settle from balances
  DELETE /transactions/:id                    → 200  refund paid shares, delete
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from marshmallow import EXCLUDE

from subpool.app.extensions import db
from subpool.app.middleware.auth_middleware import require_admin
from subpool.app.models.transaction import PaymentStatus, Transaction
from subpool.app.schemas.transaction_schema import (
    CreateTransactionSchema,
    TransactionFilterSchema,
)
from subpool.app.services import billing_service, reversal_service, settlement_service

transactions_bp = Blueprint("transactions", __name__)


def _isoformat(value):
    return value.isoformat() if value else None


def _serialize_transaction(transaction: Transaction) -> dict:
    """Serialises a Transaction and its participants to a plain dict."""
    participants = [
        {
            "id": p.id,
            "member_id": p.member_id,
            "member_name": p.member.name,
            "share_amount": p.share_amount,
            "payment_status": p.payment_status.value,
            "paid_at": _isoformat(p.paid_at),
        }
        for p in transaction.participants
    ]
    return {
        "id": transaction.id,
        "service_id": transaction.service_id,
        "service_name": transaction.service.display_name,
        "month": transaction.month,
        "total_amount": transaction.total_amount,
        "share_amount": participants[0]["share_amount"] if participants else None,
        "status": transaction.status.value,
        "description": transaction.description,
        "paid_at": _isoformat(transaction.paid_at),
        "created_at": _isoformat(transaction.created_at),
        "participants": participants,
    }


@transactions_bp.route("/", methods=["POST"])
@require_admin
def create_transaction():
    """POST /transactions — Split a monthly bill across active subscribers."""
    data = CreateTransactionSchema().load(request.get_json(force=True) or {})
    transaction = billing_service.create_transaction(
        service_id=data["service_id"],
        month=data["month"],
        total_amount=data["total_amount"],
        description=data["description"],
        session=db.session,
    )
    result = _serialize_transaction(transaction)
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@transactions_bp.route("/", methods=["GET"])
@require_admin
def list_transactions():
    filters = TransactionFilterSchema().load(request.args.to_dict(), unknown=EXCLUDE)
    status = filters.get("status")
    transactions = billing_service.list_transactions(
        service_id=filters.get("service_id"),
        month=filters.get("month"),
        status=PaymentStatus(status) if status else None,
        session=db.session,
    )
    return jsonify({
        "data": [_serialize_transaction(t) for t in transactions],
        "warnings": [],
    }), 200


@transactions_bp.route("/<int:transaction_id>", methods=["GET"])
@require_admin
def get_transaction(transaction_id: int):
    transaction = billing_service.get_transaction(
        transaction_id=transaction_id,
        session=db.session,
    )
    return jsonify({"data": _serialize_transaction(transaction), "warnings": []}), 200


@transactions_bp.route("/<int:transaction_id>/process-payments", methods=["POST"])
@require_admin
def process_payments(transaction_id: int):
    """POST /transactions/:id/process-payments — Idempotent; safe to repeat."""
    result = settlement_service.process_payments(
        transaction_id=transaction_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@transactions_bp.route("/<int:transaction_id>", methods=["DELETE"])
@require_admin
def delete_transaction(transaction_id: int):
    """DELETE /transactions/:id — Refund every PAID share, then delete."""
    result = reversal_service.delete_transaction(
        transaction_id=transaction_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
