# ruff: noqa: I001
"""Ledger transactions table with per-owner fingerprint uniqueness.

Revision ID: 0001_ledger_transactions
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_transactions"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "ledger_transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("original_text", sa.Text(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("fingerprint", sa.CHAR(length=32), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        # Concurrent identical submissions both pass the recent-window check
        sa.UniqueConstraint("owner", "fingerprint", name="uq_ledger_tx_owner_fingerprint"),
        sa.CheckConstraint("amount > 0", name="ck_ledger_tx_amount_positive"),
        sa.CheckConstraint("kind in ('income','expense')", name="ck_ledger_tx_kind"),
    )

    # Window reads and reports always filter by owner and occurred_at
    op.create_index(
        "ix_ledger_tx_owner_occurred_at",
        "ledger_transactions",
        ["owner", "occurred_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_ledger_tx_owner_occurred_at", table_name="ledger_transactions")
    op.drop_table("ledger_transactions")
