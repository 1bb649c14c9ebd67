"""create_payment_ledger_table

Revision ID: 8c1f2d4a7b90
Revises:
Create Date: 2026-10-05 09:30:12.417203

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "8c1f2d4a7b90"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "payment",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("transaction_key", sa.String(), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_grace_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("next_schedule_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_schedule_id", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('Paid', 'Cancel')", name="ck_payment_status"
        ),
    )

    # Latest-row lookups per transaction key
    op.create_index(
        "ix_payment_transaction_key_created_at",
        "payment",
        ["transaction_key", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_payment_transaction_key_created_at", table_name="payment")
    op.drop_table("payment")
