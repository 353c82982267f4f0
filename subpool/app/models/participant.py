"""
models/participant.py — Participant table definition (Transaction × Member).

No business logic. No imports from services or routes.

Key design points:
  - `share_amount` is fixed when the transaction is created and never edited.
  - transaction_id is ON DELETE CASCADE — participants are owned by their
    transaction and only ever created together with it.
  - member_id is ON DELETE RESTRICT.
  - UNIQUE(transaction_id, member_id): a member shares a bill at most once.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from subpool.app.extensions import db
from subpool.app.models.transaction import PaymentStatus, payment_status_column_type


class Participant(db.Model):
    __tablename__ = "transaction_participants"

    __table_args__ = (
        UniqueConstraint(
            "transaction_id",
            "member_id",
            name="uq_participants_transaction_member",
        ),
        CheckConstraint("share_amount > 0", name="ck_participants_share_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    share_amount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    payment_status: Mapped[PaymentStatus] = mapped_column(
        payment_status_column_type(),
        nullable=False,
        default=PaymentStatus.PENDING,
        server_default=PaymentStatus.PENDING.value,
    )

    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    transaction: Mapped["Transaction"] = relationship(  # noqa: F821
        "Transaction",
        back_populates="participants",
    )

    member: Mapped["Member"] = relationship(  # noqa: F821
        "Member",
        back_populates="participations",
    )

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Participant id={self.id} "
            f"transaction_id={self.transaction_id} "
            f"member_id={self.member_id} "
            f"share={self.share_amount}>"
        )
