"""Initial schema — members, services, subscriptions, transactions, participants.

Revision: 001_initial_schema
Created:  2026-10-19

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order (FK dependency order):
  members, services → subscriptions → transactions → transaction_participants

Payment status columns are VARCHAR with a CHECK constraint rather than a
native enum type, so the same schema runs on PostgreSQL and SQLite.

ON DELETE policies:
  subscriptions.*                      → RESTRICT
  transactions.service_id              → RESTRICT
  transaction_participants.transaction → CASCADE   (owned by the transaction)
  transaction_participants.member_id   → RESTRICT
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration
branch_labels: tuple | None = None
depends_on: tuple | None = None


def _payment_status(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.Enum(
            "PENDING",
            "PAID",
            name="payment_status",
            native_enum=False,
            length=16,
            create_constraint=True,
        ),
        nullable=False,
        server_default="PENDING",
    )


def upgrade() -> None:
    # ── members ────────────────────────────────────────────────────────────
    # balance is signed: a negative value is debt carried into the pool.

    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_deposit_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_members"),
        sa.UniqueConstraint("name", name="uq_members_name"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_members_name_nonempty",
        ),
    )

    # ── services ───────────────────────────────────────────────────────────

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("max_members", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_services"),
        sa.UniqueConstraint("name", name="uq_services_name"),
        sa.CheckConstraint("max_members >= 1", name="ck_services_max_members_positive"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_services_name_nonempty",
        ),
    )

    # ── subscriptions ──────────────────────────────────────────────────────
    # left_at IS NULL = active. One row per (member, service); leaving and
    # rejoining reuses the row.

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "member_id",
            sa.Integer(),
            sa.ForeignKey("members.id", ondelete="RESTRICT", name="fk_subscriptions_member"),
            nullable=False,
        ),
        sa.Column(
            "service_id",
            sa.Integer(),
            sa.ForeignKey("services.id", ondelete="RESTRICT", name="fk_subscriptions_service"),
            nullable=False,
        ),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("left_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_subscriptions"),
        sa.UniqueConstraint("member_id", "service_id", name="uq_subscriptions_member_service"),
    )

    # ── transactions ───────────────────────────────────────────────────────

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "service_id",
            sa.Integer(),
            sa.ForeignKey("services.id", ondelete="RESTRICT", name="fk_transactions_service"),
            nullable=False,
        ),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("month", sa.String(7), nullable=False),
        _payment_status("status"),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("description", sa.String(255), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_transactions"),
        sa.UniqueConstraint("service_id", "month", name="uq_transactions_service_month"),
        sa.CheckConstraint("total_amount > 0", name="ck_transactions_amount_positive"),
    )

    # ── transaction_participants ───────────────────────────────────────────
    # Every participant of a transaction carries the same share_amount.

    op.create_table(
        "transaction_participants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "transaction_id",
            sa.Integer(),
            sa.ForeignKey(
                "transactions.id",
                ondelete="CASCADE",
                name="fk_participants_transaction",
            ),
            nullable=False,
        ),
        sa.Column(
            "member_id",
            sa.Integer(),
            sa.ForeignKey("members.id", ondelete="RESTRICT", name="fk_participants_member"),
            nullable=False,
        ),
        sa.Column("share_amount", sa.Integer(), nullable=False),
        _payment_status("payment_status"),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_transaction_participants"),
        sa.UniqueConstraint(
            "transaction_id",
            "member_id",
            name="uq_participants_transaction_member",
        ),
        sa.CheckConstraint("share_amount > 0", name="ck_participants_share_positive"),
    )

    # ── Indexes ────────────────────────────────────────────────────────────

    op.create_index("idx_subscriptions_member", "subscriptions", ["member_id"])
    op.create_index("idx_subscriptions_service", "subscriptions", ["service_id"])
    op.create_index("idx_transactions_service", "transactions", ["service_id"])
    op.create_index("idx_participants_transaction", "transaction_participants", ["transaction_id"])
    op.create_index("idx_participants_member", "transaction_participants", ["member_id"])


def downgrade() -> None:
    """
    Drop all objects created in upgrade(), in reverse dependency order.
    For local development reset only.
    """
    op.drop_index("idx_participants_member",      table_name="transaction_participants")
    op.drop_index("idx_participants_transaction", table_name="transaction_participants")
    op.drop_index("idx_transactions_service",     table_name="transactions")
    op.drop_index("idx_subscriptions_service",    table_name="subscriptions")
    op.drop_index("idx_subscriptions_member",     table_name="subscriptions")

    op.drop_table("transaction_participants")
    op.drop_table("transactions")
    op.drop_table("subscriptions")
    op.drop_table("services")
    op.drop_table("members")
