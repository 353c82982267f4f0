"""
models/service.py — Service (shared subscription product) table definition.

No business logic. No imports from services or routes.

Capacity: `max_members` bounds the number of ACTIVE subscriptions. The bound
is enforced in roster_service.subscribe() under a row lock on this table.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from subpool.app.extensions import db


class Service(db.Model):
    __tablename__ = "services"

    __table_args__ = (
        CheckConstraint("max_members >= 1", name="ck_services_max_members_positive"),
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_services_name_nonempty",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Short identifier, stored lower-cased (e.g. "spotify").
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    display_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    max_members: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        server_default="1",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    subscriptions: Mapped[list["Subscription"]] = relationship(  # noqa: F821
        "Subscription",
        back_populates="service",
    )

    transactions: Mapped[list["Transaction"]] = relationship(  # noqa: F821
        "Transaction",
        back_populates="service",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Service id={self.id} "
            f"name={self.name!r} "
            f"max_members={self.max_members}>"
        )
