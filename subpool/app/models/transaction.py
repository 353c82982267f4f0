"""
models/transaction.py — Transaction (one billing cycle) table definition.

No business logic. No imports from services or routes.

Key design points:
  - One transaction per (service, month). `month` is a "YYYY-MM" key.
  - `total_amount` is a positive Integer in the smallest currency unit.
  - Participants are owned by the transaction: ON DELETE CASCADE at the DB
    level and cascade="all, delete-orphan" at the ORM level.
  - PaymentStatus is shared with models/participant.py.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from subpool.app.extensions import db


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID    = "PAID"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Store enum values, not member names."""
    return [member.value for member in enum_cls]


def payment_status_column_type() -> Enum:
    """Portable (VARCHAR-backed) column type for PaymentStatus."""
    return Enum(
        PaymentStatus,
        name="payment_status",
        native_enum=False,
        length=16,
        values_callable=_enum_values,
    )


class Transaction(db.Model):
    __tablename__ = "transactions"

    __table_args__ = (
        UniqueConstraint("service_id", "month", name="uq_transactions_service_month"),
        CheckConstraint("total_amount > 0", name="ck_transactions_amount_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    service_id: Mapped[int] = mapped_column(
        ForeignKey("services.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    total_amount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    month: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
    )

    status: Mapped[PaymentStatus] = mapped_column(
        payment_status_column_type(),
        nullable=False,
        default=PaymentStatus.PENDING,
        server_default=PaymentStatus.PENDING.value,
    )

    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    description: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        server_default="",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    service: Mapped["Service"] = relationship(  # noqa: F821
        "Service",
        back_populates="transactions",
    )

    # Participant order (by id) is the settlement order. Deleting a
    # transaction through the session deletes its participants too.
    participants: Mapped[list["Participant"]] = relationship(  # noqa: F821
        "Participant",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="Participant.id",
    )

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Transaction id={self.id} "
            f"service_id={self.service_id} "
            f"month={self.month} "
            f"total={self.total_amount} "
            f"status={self.status.value if self.status else None}>"
        )
