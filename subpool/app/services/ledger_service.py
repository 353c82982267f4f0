"""
services/ledger_service.py — Member Ledger business logic.

Owns member creation, deposits and the unpaid-balance view.

Balance rules:
  - deposit() is the only externally triggered balance increase outside of
    a transaction reversal (reversal_service).
  - Settlement (settlement_service) never debits below zero: a share is only
    collected when balance >= share. A negative balance can therefore only
    come from a negative initial balance at onboarding, i.e. debt carried
    into the pool. get_unpaid_summary() folds it into the amount owed
    exactly once, with no overlap with PENDING participant shares.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from subpool.app.errors import ErrorCode, conflict, invalid_input, not_found
from subpool.app.models import INT_MAX
from subpool.app.models.member import Member
from subpool.app.models.participant import Participant
from subpool.app.models.service import Service
from subpool.app.models.subscription import Subscription
from subpool.app.models.transaction import PaymentStatus, Transaction
from subpool.app.services.billing_service import month_sort_key

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _get_member_or_404(member_id: int, session: Session) -> Member:
    """Returns the Member or raises MEMBER_NOT_FOUND (404)."""
    member = session.get(Member, member_id)
    if member is None:
        raise not_found(
            ErrorCode.MEMBER_NOT_FOUND,
            f"Member {member_id} does not exist.",
        )
    return member


def _build_member_dict(member: Member) -> dict:
    """Serialises a Member to a plain dict. No business logic."""
    return {
        "id": member.id,
        "name": member.name,
        "balance": member.balance,
        "last_deposit_at": member.last_deposit_at.isoformat() if member.last_deposit_at else None,
        "created_at": member.created_at.isoformat() if member.created_at else None,
    }


def _pending_participations(member_id: int, session: Session) -> list[tuple[Participant, Transaction, Service]]:
    stmt = (
        select(Participant, Transaction, Service)
        .join(Transaction, Participant.transaction_id == Transaction.id)
        .join(Service, Transaction.service_id == Service.id)
        .where(
            Participant.member_id == member_id,
            Participant.payment_status == PaymentStatus.PENDING,
        )
    )
    rows = [tuple(row) for row in session.execute(stmt).all()]
    rows.sort(key=lambda row: (month_sort_key(row[1].month), row[0].id))
    return rows


def _active_subscriptions(member_id: int, session: Session) -> list[dict]:
    stmt = (
        select(Subscription, Service)
        .join(Service, Subscription.service_id == Service.id)
        .where(
            Subscription.member_id == member_id,
            Subscription.left_at.is_(None),
        )
        .order_by(Service.name.asc())
    )
    return [
        {
            "subscription_id": sub.id,
            "service_id": service.id,
            "service_name": service.name,
            "service_display_name": service.display_name,
            "joined_at": sub.joined_at.isoformat() if sub.joined_at else None,
        }
        for sub, service in session.execute(stmt).all()
    ]


def _build_unpaid_summary(member: Member, session: Session) -> dict:
    """
    total_unpaid = sum(PENDING shares) + max(0, -balance).

    The two terms never describe the same money: settlement leaves a share
    PENDING instead of overdrawing the balance.
    """
    rows = _pending_participations(member.id, session)

    unpaid_transactions = [
        {
            "participation_id": participant.id,
            "transaction_id": transaction.id,
            "share_amount": participant.share_amount,
            "month": transaction.month,
            "service_name": service.display_name,
            "total_amount": transaction.total_amount,
            "payment_status": participant.payment_status.value,
        }
        for participant, transaction, service in rows
    ]
    pending_total = sum(p.share_amount for p, _, _ in rows)
    negative_balance = max(0, -member.balance)

    return {
        **_build_member_dict(member),
        "unpaid": [item["participation_id"] for item in unpaid_transactions],
        "unpaid_transactions": unpaid_transactions,
        "pending_share_total": pending_total,
        "negative_balance_amount": negative_balance,
        "total_unpaid_amount": pending_total + negative_balance,
        "active_subscriptions": _active_subscriptions(member.id, session),
    }


# ── Public service functions ───────────────────────────────────────────────

def create_member(name: str, session: Session, initial_balance: int = 0) -> dict:
    """
    Onboards a new member.

    Raises:
      AppError(DUPLICATE_MEMBER_NAME, 409) — name already taken
    """
    existing = session.execute(
        select(Member).where(Member.name == name)
    ).scalar_one_or_none()
    if existing is not None:
        raise conflict(
            ErrorCode.DUPLICATE_MEMBER_NAME,
            f"A member named '{name}' already exists.",
            field="name",
        )

    member = Member(name=name, balance=initial_balance)
    session.add(member)
    try:
        session.flush()
    except IntegrityError:
        # Lost a race against a concurrent insert of the same name.
        session.rollback()
        raise conflict(
            ErrorCode.DUPLICATE_MEMBER_NAME,
            f"A member named '{name}' already exists.",
            field="name",
        )

    logger.info("Created member %s (%r) with balance %d", member.id, name, initial_balance)
    return _build_member_dict(member)


def get_member(member_id: int, session: Session) -> dict:
    member = _get_member_or_404(member_id, session)
    return _build_member_dict(member)


def deposit(member_id: int, amount: int, session: Session) -> dict:
    """
    Adds `amount` to a member's balance and stamps last_deposit_at.

    The increment is a single UPDATE ... SET balance = balance + :amount so
    concurrent deposits and settlements cannot lose an update.

    Raises:
      AppError(INVALID_AMOUNT, 400)    — amount <= 0, or the new balance would
                                       not fit the balance column
      AppError(MEMBER_NOT_FOUND, 404)  — member does not exist

    Returns: member dict with the updated balance and the deposited amount.
    """
    if amount <= 0:
        raise invalid_input(
            ErrorCode.INVALID_AMOUNT,
            "Deposit amount must be greater than zero.",
            field="amount",
        )

    member = _get_member_or_404(member_id, session)
    if member.balance + amount > INT_MAX:
        raise invalid_input(
            ErrorCode.INVALID_AMOUNT,
            "Deposit would push the balance past the largest storable amount.",
            field="amount",
        )

    session.execute(
        update(Member)
        .where(Member.id == member_id)
        .values(
            balance=Member.balance + amount,
            last_deposit_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session=False)
    )
    member = session.execute(
        select(Member)
        .where(Member.id == member_id)
        .execution_options(populate_existing=True)
    ).scalar_one()

    logger.info("Deposit of %d to member %s; balance now %d", amount, member_id, member.balance)
    return {
        **_build_member_dict(member),
        "deposited_amount": amount,
    }


def get_unpaid_summary(member_id: int, session: Session) -> dict:
    """
    Returns a member's PENDING shares, their sum, and the total owed
    including any negative balance.

    Raises:
      AppError(MEMBER_NOT_FOUND, 404)
    """
    member = _get_member_or_404(member_id, session)
    return _build_unpaid_summary(member, session)


def get_unpaid_summary_by_name(name: str, session: Session) -> dict:
    """Public lookup used by members to check what they owe. No admin required."""
    member = session.execute(
        select(Member).where(Member.name == name)
    ).scalar_one_or_none()
    if member is None:
        raise not_found(
            ErrorCode.MEMBER_NOT_FOUND,
            f"Member '{name}' does not exist.",
        )
    return _build_unpaid_summary(member, session)


def list_members(session: Session) -> list[dict]:
    """Admin overview: every member with unpaid totals and active subscriptions."""
    members = session.execute(
        select(Member).order_by(Member.name.asc())
    ).scalars().all()
    return [_build_unpaid_summary(m, session) for m in members]
