"""
services/settlement_service.py — Settlement Engine.

Collects each participant's share of a transaction from the member's balance.
This is the only code path that debits balances.

Per-participant state machine (no reverse transition here):
  PENDING ──(balance >= share: debit)──▶ PAID

Transaction state machine:
  PENDING ──(no participant left PENDING)──▶ PAID   (paid_at = now)

Outcomes reported per participant, in participant order:
  already_paid          — participant was PAID before this call; no side effect
  paid                  — balance debited by share_amount; participant now PAID
  insufficient_balance  — balance < share; participant stays PENDING;
                          shortage = share_amount - balance

Idempotence:
  The PAID check guards the debit, so calling process_payments() again with
  no intervening deposit changes nothing and converges to the same state.

Atomicity:
  The transaction row and the participants' member rows are locked
  (SELECT ... FOR UPDATE, members in id order) before any balance is read.
  Every debit, status write and the final transaction-status check happen in
  the caller's single session unit of work. Two concurrent calls on the same
  transaction serialise on the transaction row lock; the second one sees
  the first one's PAID statuses.

Batch processing is deliberately absent: a caller that wants to settle every
open transaction loops over them and commits after each one (see
app/commands.py).

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the caller's responsibility — only flush here.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from subpool.app.errors import ErrorCode, not_found
from subpool.app.models.member import Member
from subpool.app.models.participant import Participant
from subpool.app.models.transaction import PaymentStatus, Transaction

logger = logging.getLogger(__name__)


class PaymentOutcome(str, enum.Enum):
    PAID                 = "paid"
    ALREADY_PAID         = "already_paid"
    INSUFFICIENT_BALANCE = "insufficient_balance"


# ── Private helpers ────────────────────────────────────────────────────────

def _lock_transaction_or_404(transaction_id: int, session: Session) -> Transaction:
    """Row-locks the Transaction or raises TRANSACTION_NOT_FOUND (404)."""
    transaction = session.execute(
        select(Transaction)
        .where(Transaction.id == transaction_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()

    if transaction is None:
        raise not_found(
            ErrorCode.TRANSACTION_NOT_FOUND,
            f"Transaction {transaction_id} does not exist.",
        )
    return transaction


def _load_participants(transaction_id: int, session: Session) -> list[Participant]:
    stmt = (
        select(Participant)
        .where(Participant.transaction_id == transaction_id)
        .order_by(Participant.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(session.execute(stmt).scalars().all())


def _lock_members(member_ids: list[int], session: Session) -> dict[int, Member]:
    """Row-locks members in id order and returns them keyed by id."""
    if not member_ids:
        return {}
    stmt = (
        select(Member)
        .where(Member.id.in_(sorted(set(member_ids))))
        .order_by(Member.id.asc())
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {m.id: m for m in session.execute(stmt).scalars().all()}


def _settle_participant(participant: Participant, member: Member, now: datetime) -> dict:
    """
    Applies the per-participant transition and returns its outcome dict.
    Mutates `participant` and `member` in place; the caller flushes.
    """
    base = {
        "participant_id": participant.id,
        "member_id": member.id,
        "member_name": member.name,
        "share_amount": participant.share_amount,
    }

    if participant.is_paid:
        return {**base, "status": PaymentOutcome.ALREADY_PAID.value}

    if member.balance >= participant.share_amount:
        member.balance -= participant.share_amount
        participant.payment_status = PaymentStatus.PAID
        participant.paid_at = now
        return {
            **base,
            "status": PaymentOutcome.PAID.value,
            "amount": participant.share_amount,
            "remaining_balance": member.balance,
        }

    return {
        **base,
        "status": PaymentOutcome.INSUFFICIENT_BALANCE.value,
        "current_balance": member.balance,
        "required_amount": participant.share_amount,
        "shortage": participant.share_amount - member.balance,
    }


def summarize_outcomes(results: list[dict]) -> dict:
    """paid_count includes participants that were already PAID."""
    settled = {PaymentOutcome.PAID.value, PaymentOutcome.ALREADY_PAID.value}
    return {
        "total_participants": len(results),
        "paid_count": sum(1 for r in results if r["status"] in settled),
        "pending_count": sum(
            1 for r in results if r["status"] == PaymentOutcome.INSUFFICIENT_BALANCE.value
        ),
    }


# ── Public service functions ───────────────────────────────────────────────

def process_payments(transaction_id: int, session: Session) -> dict:
    """
    Attempts to collect every PENDING share of a transaction.

    Raises:
      AppError(TRANSACTION_NOT_FOUND, 404)

    Returns:
      {
        "transaction_id": int,
        "status": "PENDING" | "PAID",
        "paid_at": iso str | None,
        "results": [outcome dict per participant, in participant order],
        "summary": {"total_participants", "paid_count", "pending_count"},
      }
    """
    transaction = _lock_transaction_or_404(transaction_id, session)
    participants = _load_participants(transaction_id, session)
    members = _lock_members([p.member_id for p in participants], session)

    now = datetime.now(timezone.utc)
    results = [
        _settle_participant(participant, members[participant.member_id], now)
        for participant in participants
    ]
    session.flush()

    still_pending = session.execute(
        select(Participant.id).where(
            Participant.transaction_id == transaction_id,
            Participant.payment_status == PaymentStatus.PENDING,
        )
    ).scalars().all()

    if not still_pending and not transaction.is_paid:
        transaction.status = PaymentStatus.PAID
        transaction.paid_at = now
        session.flush()
        logger.info("Transaction %s fully paid", transaction_id)

    summary = summarize_outcomes(results)
    logger.info(
        "Processed payments for transaction %s: %d paid, %d pending",
        transaction_id, summary["paid_count"], summary["pending_count"],
    )

    return {
        "transaction_id": transaction.id,
        "status": transaction.status.value,
        "paid_at": transaction.paid_at.isoformat() if transaction.paid_at else None,
        "results": results,
        "summary": summary,
    }
