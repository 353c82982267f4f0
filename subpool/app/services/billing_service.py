"""
services/billing_service.py — Billing Engine.

Creates one transaction per (service, month), splitting the bill across the
service's currently active subscribers.

Share computation:
  share_amount = ceil(total_amount / active_subscriber_count)

  Integer ceiling division, identical for every participant. The sum of the
  shares may exceed total_amount by up to (count - 1) currency units; the
  rounding favours the pool. Never round() or floor().

Atomicity:
  The transaction row and every participant row are added to the session
  and flushed together; the route commits once. A failure anywhere (including
  the (service, month) unique constraint) leaves nothing behind.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from subpool.app.errors import (
    ErrorCode,
    conflict,
    invalid_input,
    invalid_state,
    not_found,
)
from subpool.app.models.participant import Participant
from subpool.app.models.service import Service
from subpool.app.models.subscription import Subscription
from subpool.app.models.transaction import PaymentStatus, Transaction

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"([0-9]{4})-([0-9]{2})")


# ── Month keys ─────────────────────────────────────────────────────────────

def parse_month(month: str) -> tuple[int, int]:
    """
    Parses a "YYYY-MM" key into (year, month).

    Raises AppError(INVALID_MONTH, 400) for anything else, including
    month numbers outside 01–12.
    """
    match = MONTH_PATTERN.fullmatch(month or "")
    if match is None:
        raise invalid_input(
            ErrorCode.INVALID_MONTH,
            f"'{month}' is not a valid month. Use the YYYY-MM format.",
            field="month",
        )
    year, month_number = int(match.group(1)), int(match.group(2))
    if not 1 <= month_number <= 12:
        raise invalid_input(
            ErrorCode.INVALID_MONTH,
            f"'{month}' is not a valid month. Month must be between 01 and 12.",
            field="month",
        )
    return year, month_number


def month_sort_key(month: str) -> tuple[int, int]:
    """Chronological sort key for stored month keys."""
    return parse_month(month)


def compute_share_amount(total_amount: int, participant_count: int) -> int:
    """Ceiling of total_amount / participant_count using integer arithmetic only."""
    if participant_count <= 0:
        raise ValueError("participant_count must be positive")
    return -(-total_amount // participant_count)


# ── Private helpers ────────────────────────────────────────────────────────

def _get_transaction_or_404(transaction_id: int, session: Session) -> Transaction:
    """Returns the Transaction or raises TRANSACTION_NOT_FOUND (404)."""
    transaction = session.get(Transaction, transaction_id)
    if transaction is None:
        raise not_found(
            ErrorCode.TRANSACTION_NOT_FOUND,
            f"Transaction {transaction_id} does not exist.",
        )
    return transaction


def _active_subscriber_ids(service_id: int, session: Session) -> list[int]:
    """Member ids of the service's active subscriptions, in join order."""
    stmt = (
        select(Subscription.member_id)
        .where(
            Subscription.service_id == service_id,
            Subscription.left_at.is_(None),
        )
        .order_by(Subscription.joined_at.asc(), Subscription.id.asc())
    )
    return list(session.execute(stmt).scalars().all())


def _duplicate_transaction_error(service_id: int, month: str):
    return conflict(
        ErrorCode.DUPLICATE_TRANSACTION,
        f"A transaction for service {service_id} in {month} already exists.",
        field="month",
    )


# ── Public service functions ───────────────────────────────────────────────

def create_transaction(
        service_id: int,
        month: str,
        total_amount: int,
        session: Session,
        description: str | None = None,
) -> Transaction:
    """
    Posts a monthly bill for a service and splits it across active subscribers.

    Raises:
      AppError(INVALID_AMOUNT, 400)          — total_amount <= 0
      AppError(INVALID_MONTH, 400)           — month is not YYYY-MM
      AppError(SERVICE_NOT_FOUND, 404)       — service does not exist
      AppError(NO_ACTIVE_SUBSCRIBERS, 422)   — nobody to split the bill with
      AppError(DUPLICATE_TRANSACTION, 409)   — (service, month) already billed

    Returns: the new Transaction with its participants loaded.
    """
    if total_amount <= 0:
        raise invalid_input(
            ErrorCode.INVALID_AMOUNT,
            "total_amount must be greater than zero.",
            field="total_amount",
        )
    parse_month(month)

    # Lock the service row so the subscriber set cannot change under us.
    service = session.execute(
        select(Service).where(Service.id == service_id).with_for_update()
    ).scalar_one_or_none()
    if service is None:
        raise not_found(
            ErrorCode.SERVICE_NOT_FOUND,
            f"Service {service_id} does not exist.",
        )

    member_ids = _active_subscriber_ids(service_id, session)
    if not member_ids:
        raise invalid_state(
            ErrorCode.NO_ACTIVE_SUBSCRIBERS,
            f"Service {service_id} has no active subscribers to bill.",
        )

    existing = session.execute(
        select(Transaction.id).where(
            Transaction.service_id == service_id,
            Transaction.month == month,
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise _duplicate_transaction_error(service_id, month)

    share_amount = compute_share_amount(total_amount, len(member_ids))

    transaction = Transaction(
        service_id=service_id,
        total_amount=total_amount,
        month=month,
        status=PaymentStatus.PENDING,
        description=description or f"{service.display_name} subscription ({month})",
        participants=[
            Participant(
                member_id=member_id,
                share_amount=share_amount,
                payment_status=PaymentStatus.PENDING,
            )
            for member_id in member_ids
        ],
    )
    session.add(transaction)
    try:
        session.flush()
    except IntegrityError:
        # A concurrent request billed the same (service, month) first.
        session.rollback()
        raise _duplicate_transaction_error(service_id, month)

    logger.info(
        "Created transaction %s for service %s (%s): total=%d, %d participants x %d",
        transaction.id, service_id, month, total_amount, len(member_ids), share_amount,
    )
    return transaction


def get_transaction(transaction_id: int, session: Session) -> Transaction:
    """Raises TRANSACTION_NOT_FOUND (404) if absent."""
    return _get_transaction_or_404(transaction_id, session)


def list_transactions(
        session: Session,
        service_id: int | None = None,
        month: str | None = None,
        status: PaymentStatus | None = None,
) -> list[Transaction]:
    """Lists transactions, newest first, optionally filtered."""
    stmt = select(Transaction).options(selectinload(Transaction.participants))
    if service_id is not None:
        stmt = stmt.where(Transaction.service_id == service_id)
    if month is not None:
        parse_month(month)
        stmt = stmt.where(Transaction.month == month)
    if status is not None:
        stmt = stmt.where(Transaction.status == status)
    stmt = stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    return list(session.execute(stmt).scalars().all())


def list_unpaid_transaction_ids(session: Session) -> list[int]:
    """
    Ids of every non-PAID transaction, oldest month first.

    Used by callers that settle transactions one at a time.
    """
    rows = session.execute(
        select(Transaction.id, Transaction.month).where(
            Transaction.status != PaymentStatus.PAID
        )
    ).all()
    ordered = sorted(rows, key=lambda row: (month_sort_key(row.month), row.id))
    return [row.id for row in ordered]
