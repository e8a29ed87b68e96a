from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Index, Integer, Numeric, String, UniqueConstraint

from app.core.database import Base


class BalanceSnapshot(Base):
    """End-of-day balance of one account; written once by the EOD job, never updated."""

    __tablename__ = "balance_snapshots"
    __table_args__ = (
        UniqueConstraint("product_id", "date", name="uq_balance_snapshots_product_date"),
        Index("ix_balance_snapshots_customer_date", "customer_id", "date"),
    )

    id = Column(Integer, primary_key=True)
    product_id = Column(String(32), nullable=False)
    customer_id = Column(String, nullable=False)
    account_type = Column(String(20), nullable=True)
    product_type = Column(String(10), nullable=False)
    date = Column(Date, nullable=False)
    # PASSIVE: cash balance. ACTIVE: credit line.
    balance_eod = Column(Numeric(18, 2), nullable=False)
    amount_used_eod = Column(Numeric(18, 2), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
