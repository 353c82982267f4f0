"""
services/roster_service.py — Service Roster business logic.

Owns service definitions and capacity-bounded subscriptions.

Capacity invariant:
  count(active subscriptions of a service) <= service.max_members

  subscribe() locks the service row (SELECT ... FOR UPDATE) before counting,
  so the capacity check and the insert/reactivation form one atomic unit.
  update_service() refuses to lower max_members below the active count.

Subscription rows:
  One row per (member, service) pair. unsubscribe() sets left_at; a later
  subscribe() reactivates the same row (left_at cleared, joined_at reset)
  instead of inserting a duplicate.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from subpool.app.errors import ErrorCode, conflict, invalid_state, not_found
from subpool.app.models.member import Member
from subpool.app.models.service import Service
from subpool.app.models.subscription import Subscription

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _get_service_or_404(service_id: int, session: Session, lock: bool = False) -> Service:
    """Returns the Service (optionally row-locked) or raises SERVICE_NOT_FOUND (404)."""
    stmt = select(Service).where(Service.id == service_id)
    if lock:
        stmt = stmt.with_for_update()
    service = session.execute(stmt).scalar_one_or_none()
    if service is None:
        raise not_found(
            ErrorCode.SERVICE_NOT_FOUND,
            f"Service {service_id} does not exist.",
        )
    return service


def _get_member_or_404(member_id: int, session: Session) -> Member:
    """Returns the Member or raises MEMBER_NOT_FOUND (404)."""
    member = session.get(Member, member_id)
    if member is None:
        raise not_found(
            ErrorCode.MEMBER_NOT_FOUND,
            f"Member {member_id} does not exist.",
        )
    return member


def _count_active(service_id: int, session: Session) -> int:
    return session.execute(
        select(func.count(Subscription.id)).where(
            Subscription.service_id == service_id,
            Subscription.left_at.is_(None),
        )
    ).scalar_one()


def _build_service_dict(service: Service, current_members: int) -> dict:
    """Serialises a Service with its occupancy. No business logic."""
    return {
        "id": service.id,
        "name": service.name,
        "display_name": service.display_name,
        "max_members": service.max_members,
        "current_members": current_members,
        "available_slots": service.max_members - current_members,
        "created_at": service.created_at.isoformat() if service.created_at else None,
    }


def _build_subscription_dict(subscription: Subscription) -> dict:
    return {
        "id": subscription.id,
        "member_id": subscription.member_id,
        "member_name": subscription.member.name,
        "service_id": subscription.service_id,
        "service_name": subscription.service.name,
        "service_display_name": subscription.service.display_name,
        "joined_at": subscription.joined_at.isoformat() if subscription.joined_at else None,
        "left_at": subscription.left_at.isoformat() if subscription.left_at else None,
        "active": subscription.is_active,
    }


def _service_name_taken(name: str):
    return conflict(
        ErrorCode.DUPLICATE_SERVICE_NAME,
        f"A service named '{name}' already exists.",
        field="name",
    )


# ── Services ───────────────────────────────────────────────────────────────

def create_service(
        name: str,
        display_name: str,
        max_members: int,
        session: Session,
) -> dict:
    """
    Creates a service. `name` is normalised to lower case.

    Raises:
      AppError(DUPLICATE_SERVICE_NAME, 409)
    """
    name = name.strip().lower()

    existing = session.execute(
        select(Service).where(Service.name == name)
    ).scalar_one_or_none()
    if existing is not None:
        raise _service_name_taken(name)

    service = Service(name=name, display_name=display_name, max_members=max_members)
    session.add(service)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        raise _service_name_taken(name)

    logger.info("Created service %s (%r), capacity %d", service.id, name, max_members)
    return _build_service_dict(service, 0)


def update_service(
        service_id: int,
        session: Session,
        display_name: str | None = None,
        max_members: int | None = None,
) -> dict:
    """
    Partial update of display name and/or capacity.

    Raises:
      AppError(SERVICE_NOT_FOUND, 404)
      AppError(CAPACITY_BELOW_ACTIVE, 422) — new capacity < active subscriptions
    """
    service = _get_service_or_404(service_id, session, lock=True)
    current = _count_active(service_id, session)

    if max_members is not None and max_members < current:
        raise invalid_state(
            ErrorCode.CAPACITY_BELOW_ACTIVE,
            f"Service {service_id} has {current} active subscribers; "
            f"capacity cannot be lowered to {max_members}.",
        )

    if display_name is not None:
        service.display_name = display_name
    if max_members is not None:
        service.max_members = max_members
    session.flush()

    return _build_service_dict(service, current)


def get_service(service_id: int, session: Session) -> dict:
    """Returns a service with its occupancy and active subscribers."""
    service = _get_service_or_404(service_id, session)

    stmt = (
        select(Subscription)
        .where(
            Subscription.service_id == service_id,
            Subscription.left_at.is_(None),
        )
        .order_by(Subscription.joined_at.asc(), Subscription.id.asc())
    )
    active = list(session.execute(stmt).scalars().all())

    return {
        **_build_service_dict(service, len(active)),
        "subscribers": [
            {
                "member_id": s.member_id,
                "member_name": s.member.name,
                "joined_at": s.joined_at.isoformat() if s.joined_at else None,
            }
            for s in active
        ],
    }


def list_services(session: Session) -> list[dict]:
    """Every service annotated with current_members and available_slots."""
    active_counts = (
        select(
            Subscription.service_id.label("service_id"),
            func.count(Subscription.id).label("active_count"),
        )
        .where(Subscription.left_at.is_(None))
        .group_by(Subscription.service_id)
        .subquery()
    )
    stmt = (
        select(Service, func.coalesce(active_counts.c.active_count, 0))
        .outerjoin(active_counts, Service.id == active_counts.c.service_id)
        .order_by(Service.name.asc())
    )
    return [
        _build_service_dict(service, int(count))
        for service, count in session.execute(stmt).all()
    ]


# ── Subscriptions ──────────────────────────────────────────────────────────

def subscribe(member_id: int, service_id: int, session: Session) -> dict:
    """
    Subscribes a member to a service, or reactivates a left subscription.

    Raises:
      AppError(SERVICE_NOT_FOUND, 404)
      AppError(MEMBER_NOT_FOUND, 404)
      AppError(SERVICE_FULL, 409)        — no free slot; state untouched
      AppError(ALREADY_SUBSCRIBED, 409)  — an active subscription exists
    """
    service = _get_service_or_404(service_id, session, lock=True)
    _get_member_or_404(member_id, session)

    current = _count_active(service_id, session)
    if current >= service.max_members:
        raise conflict(
            ErrorCode.SERVICE_FULL,
            f"Service {service_id} is full ({current}/{service.max_members}).",
            field="service_id",
        )

    existing = session.execute(
        select(Subscription).where(
            Subscription.member_id == member_id,
            Subscription.service_id == service_id,
        )
    ).scalar_one_or_none()

    if existing is not None and existing.is_active:
        raise conflict(
            ErrorCode.ALREADY_SUBSCRIBED,
            f"Member {member_id} is already subscribed to service {service_id}.",
        )

    now = datetime.now(timezone.utc)
    if existing is not None:
        existing.left_at = None
        existing.joined_at = now
        subscription = existing
    else:
        subscription = Subscription(member_id=member_id, service_id=service_id, joined_at=now)
        session.add(subscription)

    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        raise conflict(
            ErrorCode.ALREADY_SUBSCRIBED,
            f"Member {member_id} is already subscribed to service {service_id}.",
        )

    logger.info("Member %s subscribed to service %s", member_id, service_id)
    return _build_subscription_dict(subscription)


def unsubscribe(member_id: int, service_id: int, session: Session) -> dict:
    """
    Ends an active subscription. Existing transactions are not affected.

    Raises:
      AppError(SUBSCRIPTION_NOT_FOUND, 404) — no active subscription
    """
    subscription = session.execute(
        select(Subscription).where(
            Subscription.member_id == member_id,
            Subscription.service_id == service_id,
            Subscription.left_at.is_(None),
        )
    ).scalar_one_or_none()

    if subscription is None:
        raise not_found(
            ErrorCode.SUBSCRIPTION_NOT_FOUND,
            f"Member {member_id} has no active subscription to service {service_id}.",
        )

    subscription.left_at = datetime.now(timezone.utc)
    session.flush()

    logger.info("Member %s left service %s", member_id, service_id)
    return _build_subscription_dict(subscription)


def list_subscriptions(
        session: Session,
        member_id: int | None = None,
        service_id: int | None = None,
        active: bool | None = None,
) -> list[dict]:
    """Lists subscriptions, most recently joined first, optionally filtered."""
    stmt = select(Subscription)
    if member_id is not None:
        stmt = stmt.where(Subscription.member_id == member_id)
    if service_id is not None:
        stmt = stmt.where(Subscription.service_id == service_id)
    if active is True:
        stmt = stmt.where(Subscription.left_at.is_(None))
    elif active is False:
        stmt = stmt.where(Subscription.left_at.is_not(None))
    stmt = stmt.order_by(Subscription.joined_at.desc(), Subscription.id.desc())

    return [_build_subscription_dict(s) for s in session.execute(stmt).scalars().all()]
