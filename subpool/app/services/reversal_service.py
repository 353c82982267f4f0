"""
services/reversal_service.py — Reversal/Deletion Engine.

delete_transaction() undoes a billing cycle:
  1. Credit every PAID participant's member by exactly share_amount
     (the inverse of the settlement debit).
  2. Delete the participant rows.
  3. Delete the transaction row.

All three steps happen in the caller's single unit of work; the route commits
once. Deleting is destructive and not idempotent: a second call on the same id
raises TRANSACTION_NOT_FOUND.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the caller's responsibility — only flush here.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from subpool.app.errors import ErrorCode, not_found
from subpool.app.models.member import Member
from subpool.app.models.participant import Participant
from subpool.app.models.transaction import PaymentStatus, Transaction

logger = logging.getLogger(__name__)


def delete_transaction(transaction_id: int, session: Session) -> dict:
    """
    Refunds paid shares and removes the transaction with its participants.

    Raises:
      AppError(TRANSACTION_NOT_FOUND, 404)

    Returns the refund report:
      {
        "transaction_id": int,
        "refunded_members": [{"member_id", "member_name", "refunded_amount"}],
        "total_refunded_amount": int,
        "refunded_count": int,
      }
    """
    transaction = session.execute(
        select(Transaction)
        .where(Transaction.id == transaction_id)
        .with_for_update()
    ).scalar_one_or_none()

    if transaction is None:
        raise not_found(
            ErrorCode.TRANSACTION_NOT_FOUND,
            f"Transaction {transaction_id} does not exist.",
        )

    paid = list(session.execute(
        select(Participant)
        .where(
            Participant.transaction_id == transaction_id,
            Participant.payment_status == PaymentStatus.PAID,
        )
        .order_by(Participant.id.asc())
        .execution_options(populate_existing=True)
    ).scalars().all())

    members: dict[int, Member] = {}
    if paid:
        stmt = (
            select(Member)
            .where(Member.id.in_(sorted({p.member_id for p in paid})))
            .order_by(Member.id.asc())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        members = {m.id: m for m in session.execute(stmt).scalars().all()}

    refunded_members = []
    for participant in paid:
        member = members[participant.member_id]
        member.balance += participant.share_amount
        refunded_members.append({
            "member_id": member.id,
            "member_name": member.name,
            "refunded_amount": participant.share_amount,
        })
        logger.info(
            "Refunded %d to member %s for deleted transaction %s",
            participant.share_amount, member.id, transaction_id,
        )

    session.flush()

    # cascade="all, delete-orphan" removes every participant row before the
    # transaction row.
    session.delete(transaction)
    session.flush()

    total = sum(r["refunded_amount"] for r in refunded_members)
    logger.info(
        "Deleted transaction %s; refunded %d across %d members",
        transaction_id, total, len(refunded_members),
    )

    return {
        "transaction_id": transaction_id,
        "refunded_members": refunded_members,
        "total_refunded_amount": total,
        "refunded_count": len(refunded_members),
    }
