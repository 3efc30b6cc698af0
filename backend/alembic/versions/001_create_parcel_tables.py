"""Create parcels, payments, users and riders tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Initial schema for the parcel delivery backend.
How:   Typed columns for the fields the API filters, sorts or updates on;
       every other client field lives in the `details` JSON column.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "parcels",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_by_email",
            sa.String(320),
            nullable=False,
            comment="Email of the user who booked the parcel",
        ),
        sa.Column(
            "payment_status",
            sa.String(50),
            nullable=False,
            server_default=sa.text("'unpaid'"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_parcels"),
    )
    op.create_index("idx_parcels_created_by_email", "parcels", ["created_by_email"])
    op.create_index("idx_parcels_created_at", "parcels", ["created_at"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), nullable=False),
        # No foreign key: payment history outlives deleted parcels
        sa.Column("parcel_id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("payment_method", sa.JSON(), nullable=True),
        sa.Column("transaction_id", sa.String(255), nullable=False),
        sa.Column("paid_at_string", sa.String(40), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
    )
    op.create_index("idx_payments_email", "payments", ["email"])
    op.create_index("idx_payments_paid_at", "payments", ["paid_at"])

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "riders",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "status",
            sa.String(50),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_riders"),
    )
    op.create_index("idx_riders_status", "riders", ["status"])


def downgrade() -> None:
    op.drop_index("idx_riders_status", table_name="riders")
    op.drop_table("riders")
    op.drop_table("users")
    op.drop_index("idx_payments_paid_at", table_name="payments")
    op.drop_index("idx_payments_email", table_name="payments")
    op.drop_table("payments")
    op.drop_index("idx_parcels_created_at", table_name="parcels")
    op.drop_index("idx_parcels_created_by_email", table_name="parcels")
    op.drop_table("parcels")
