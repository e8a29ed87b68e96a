import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Index, Integer, Numeric, String

from app.core.database import Base


def _new_account_id() -> str:
    return uuid.uuid4().hex


class Account(Base):
    """Deposit (PASSIVE) or credit (ACTIVE) product owned by a customer."""

    __tablename__ = "accounts"
    __table_args__ = (
        Index("ix_accounts_customer_account_type", "customer_id", "account_type"),
        Index("ix_accounts_customer_product_type", "customer_id", "product_type"),
    )

    id = Column(String(32), primary_key=True, default=_new_account_id)
    customer_id = Column(String, nullable=False, index=True)
    account_number = Column(String(20), nullable=False, unique=True)
    product_type = Column(String(10), nullable=False)  # PASSIVE, ACTIVE
    account_type = Column(String(20), nullable=True)  # PASSIVE only
    credit_type = Column(String(20), nullable=True)  # ACTIVE only
    status = Column(String(10), nullable=False, default="ACTIVE")

    # PASSIVE: cash balance. ACTIVE: credit line.
    balance = Column(Numeric(18, 2), nullable=False, default=0)
    amount_used = Column(Numeric(18, 2), nullable=True)

    opening_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    specific_deposit_date = Column(DateTime, nullable=True)  # FIXED_TERM only
    monthly_movements = Column(Integer, nullable=True)
    payment_day_of_month = Column(Integer, nullable=True)  # 1-31, credit products
    overdue_amount = Column(Numeric(18, 2), nullable=True)

    maintenance_fee_amount = Column(Numeric(18, 2), nullable=True)
    required_daily_average = Column(Numeric(18, 2), nullable=True)
    free_transaction_limit = Column(Integer, nullable=True)
    transaction_fee_amount = Column(Numeric(18, 2), nullable=True)
    current_monthly_transactions = Column(Integer, nullable=True)

    holders = Column(JSON, nullable=False, default=list)
    signatories = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
