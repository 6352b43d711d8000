"""create donations table

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "donations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("donor_id", sa.Text(), nullable=False),
        sa.Column("donor_name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone_number", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("purpose", sa.Text(), nullable=True),
        sa.Column("amount_option", sa.Text(), nullable=False),
        sa.Column("custom_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "currency",
            sa.Text(),
            nullable=False,
            server_default=sa.text("'INR'"),
        ),
        sa.Column("amount_in_words", sa.Text(), nullable=False),
        sa.Column(
            "message",
            sa.Text(),
            nullable=False,
            server_default=sa.text("'No message'"),
        ),
        sa.Column(
            "donation_date",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "is_anonymous",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "status",
            sa.Text(),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("payment_method", sa.Text(), nullable=True),
        sa.Column("upi_link", sa.Text(), nullable=False),
        sa.Column("qr_code_url", sa.Text(), nullable=False),
        sa.Column("payment_link", sa.Text(), nullable=True),
        sa.Column("payment_intent_id", sa.Text(), nullable=True),
        sa.Column("spouse_name", sa.Text(), nullable=True),
        sa.Column("donation_type", sa.Text(), nullable=True),
        sa.Column("relation", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'paid', 'completed', 'failed')",
            name="ck_donations_status",
        ),
    )
    op.create_index("ix_donations_donor_id", "donations", ["donor_id"], unique=True)
    op.execute(
        "CREATE INDEX ix_donations_donation_date ON donations (donation_date DESC)"
    )
    op.create_index("ix_donations_payment_intent_id", "donations", ["payment_intent_id"])


def downgrade() -> None:
    op.drop_index("ix_donations_payment_intent_id", table_name="donations")
    op.execute("DROP INDEX IF EXISTS ix_donations_donation_date")
    op.drop_index("ix_donations_donor_id", table_name="donations")
    op.drop_table("donations")
