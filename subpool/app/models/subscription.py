"""
models/subscription.py — Subscription junction table (Member × Service).

No business logic. No imports from services or routes.

One row per (member, service) pair, ever. Leaving sets `left_at`; joining
again clears it and resets `joined_at` on the same row. The unique
constraint below is what turns a concurrent duplicate subscribe into a
conflict instead of a second active row.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from subpool.app.extensions import db


class Subscription(db.Model):
    __tablename__ = "subscriptions"

    __table_args__ = (
        UniqueConstraint("member_id", "service_id", name="uq_subscriptions_member_service"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    service_id: Mapped[int] = mapped_column(
        ForeignKey("services.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # NULL = active.
    left_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    member: Mapped["Member"] = relationship(  # noqa: F821
        "Member",
        back_populates="subscriptions",
    )

    service: Mapped["Service"] = relationship(  # noqa: F821
        "Service",
        back_populates="subscriptions",
    )

    @property
    def is_active(self) -> bool:
        return self.left_at is None

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Subscription id={self.id} "
            f"member_id={self.member_id} "
            f"service_id={self.service_id} "
            f"active={self.is_active}>"
        )
