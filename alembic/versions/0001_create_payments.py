"""create_payments

Revision ID: 0001_create_payments
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_create_payments"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "payments",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column("merchant_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        # Payment details
        sa.Column("amount", sa.DECIMAL(precision=32, scale=8), nullable=False),
        sa.Column("currency", sqlmodel.sql.sqltypes.AutoString(length=12), nullable=False),
        sa.Column("stellar_address", sqlmodel.sql.sqltypes.AutoString(length=56), nullable=True),
        sa.Column("expiration", sa.DateTime(), nullable=False),
        # Monitor state
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "paid",
                "expired",
                "failed",
                name="payment_status",
                native_enum=False,
                length=20,
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("last_paging_token", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        # Settlement evidence
        sa.Column("transaction_hash", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        sa.Column("amount_received", sa.DECIMAL(precision=32, scale=8), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        # Extra
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("customer_email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        # Timestamps
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_payments_merchant_id"), "payments", ["merchant_id"], unique=False)
    op.create_index(op.f("ix_payments_expiration"), "payments", ["expiration"], unique=False)
    op.create_index(op.f("ix_payments_status"), "payments", ["status"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_payments_status"), table_name="payments")
    op.drop_index(op.f("ix_payments_expiration"), table_name="payments")
    op.drop_index(op.f("ix_payments_merchant_id"), table_name="payments")
    op.drop_table("payments")
