"""Pydantic schemas for account operations."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.domain.accounts.enums import AccountStatus, AccountType, CreditType, ProductType


class CamelModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountCreate(CamelModel):
    """Schema for opening a deposit account or credit product.

    ``balance`` is optional here so that its absence is reported by the
    service's own request validation, together with the other opening rules.
    """

    customer_id: str = Field(..., min_length=1)
    product_type: ProductType
    account_type: Optional[AccountType] = None
    credit_type: Optional[CreditType] = None
    balance: Optional[Decimal] = None
    amount_used: Optional[Decimal] = None
    payment_day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    specific_deposit_date: Optional[datetime] = None
    holders: list[str] = Field(default_factory=list)
    signatories: list[str] = Field(default_factory=list)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


class AccountOut(CamelModel):
    """Schema for returning account data."""

    id: str
    customer_id: str
    account_number: str
    product_type: ProductType
    account_type: Optional[AccountType] = None
    credit_type: Optional[CreditType] = None
    status: AccountStatus
    opening_date: datetime

    balance: Decimal
    amount_used: Optional[Decimal] = None

    payment_day_of_month: Optional[int] = None
    overdue_amount: Optional[Decimal] = None

    maintenance_fee_amount: Optional[Decimal] = None
    required_daily_average: Optional[Decimal] = None
    free_transaction_limit: Optional[int] = None
    transaction_fee_amount: Optional[Decimal] = None
    current_monthly_transactions: Optional[int] = None
    monthly_movements: Optional[int] = None
    specific_deposit_date: Optional[datetime] = None

    holders: list[str] = Field(default_factory=list)
    signatories: list[str] = Field(default_factory=list)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class BalanceUpdate(CamelModel):
    """New absolute values for an account's balance and consumed credit."""

    balance: Decimal
    amount_used: Optional[Decimal] = None


class TransactionStatusOut(CamelModel):
    """Fee configuration and monthly counter used to price deposit-account movements."""

    free_transaction_limit: Optional[int] = None
    current_monthly_transactions: Optional[int] = None
    transaction_fee_amount: Optional[Decimal] = None
