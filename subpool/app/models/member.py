"""
models/member.py — Member table definition.

No business logic. No imports from services or routes.

Key design points:
  - `balance` is a signed Integer in the smallest currency unit — never Float.
    A negative balance represents debt carried into the pool at onboarding.
  - Members are never hard-deleted through the API; participant and
    subscription rows reference them with ON DELETE RESTRICT.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from subpool.app.extensions import db


class Member(db.Model):
    __tablename__ = "members"

    __table_args__ = (
        # Also enforced by the marshmallow schema; the schema is the primary gate.
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_members_name_nonempty",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )

    balance: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    # Set on every successful deposit.
    last_deposit_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    subscriptions: Mapped[list["Subscription"]] = relationship(  # noqa: F821
        "Subscription",
        back_populates="member",
    )

    participations: Mapped[list["Participant"]] = relationship(  # noqa: F821
        "Participant",
        back_populates="member",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Member id={self.id} name={self.name!r} balance={self.balance}>"
