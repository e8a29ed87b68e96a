"""Create accounts and balance_snapshots tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_create_accounts_and_snapshots"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("accounts"):
        op.create_table(
            "accounts",
            sa.Column("id", sa.String(length=32), nullable=False),
            sa.Column("customer_id", sa.String(), nullable=False),
            sa.Column("account_number", sa.String(length=20), nullable=False),
            sa.Column("product_type", sa.String(length=10), nullable=False),
            sa.Column("account_type", sa.String(length=20), nullable=True),
            sa.Column("credit_type", sa.String(length=20), nullable=True),
            sa.Column("status", sa.String(length=10), nullable=False),
            sa.Column("balance", sa.Numeric(18, 2), nullable=False),
            sa.Column("amount_used", sa.Numeric(18, 2), nullable=True),
            sa.Column("opening_date", sa.DateTime(), nullable=False),
            sa.Column("specific_deposit_date", sa.DateTime(), nullable=True),
            sa.Column("monthly_movements", sa.Integer(), nullable=True),
            sa.Column("payment_day_of_month", sa.Integer(), nullable=True),
            sa.Column("overdue_amount", sa.Numeric(18, 2), nullable=True),
            sa.Column("maintenance_fee_amount", sa.Numeric(18, 2), nullable=True),
            sa.Column("required_daily_average", sa.Numeric(18, 2), nullable=True),
            sa.Column("free_transaction_limit", sa.Integer(), nullable=True),
            sa.Column("transaction_fee_amount", sa.Numeric(18, 2), nullable=True),
            sa.Column("current_monthly_transactions", sa.Integer(), nullable=True),
            sa.Column("holders", sa.JSON(), nullable=False),
            sa.Column("signatories", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("account_number"),
        )
        op.create_index("ix_accounts_customer_id", "accounts", ["customer_id"], unique=False)
        op.create_index("ix_accounts_customer_account_type", "accounts", ["customer_id", "account_type"], unique=False)
        op.create_index("ix_accounts_customer_product_type", "accounts", ["customer_id", "product_type"], unique=False)

    if not inspector.has_table("balance_snapshots"):
        op.create_table(
            "balance_snapshots",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.String(length=32), nullable=False),
            sa.Column("customer_id", sa.String(), nullable=False),
            sa.Column("account_type", sa.String(length=20), nullable=True),
            sa.Column("product_type", sa.String(length=10), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("balance_eod", sa.Numeric(18, 2), nullable=False),
            sa.Column("amount_used_eod", sa.Numeric(18, 2), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("product_id", "date", name="uq_balance_snapshots_product_date"),
        )
        op.create_index(
            "ix_balance_snapshots_customer_date", "balance_snapshots", ["customer_id", "date"], unique=False
        )


def downgrade() -> None:
    op.drop_index("ix_balance_snapshots_customer_date", table_name="balance_snapshots")
    op.drop_table("balance_snapshots")
    op.drop_index("ix_accounts_customer_product_type", table_name="accounts")
    op.drop_index("ix_accounts_customer_account_type", table_name="accounts")
    op.drop_index("ix_accounts_customer_id", table_name="accounts")
    op.drop_table("accounts")
