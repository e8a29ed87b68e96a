"""Pydantic schemas for end-of-day balance history."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DailyBalanceOut(BaseModel):
    """One account's end-of-day figures, the input for daily average balance (SPD) reports."""

    product_id: str
    account_type: Optional[str] = None
    product_type: str
    date: dt.date
    balance_eod: Decimal = Field(alias="balanceEOD")
    amount_used_eod: Optional[Decimal] = Field(default=None, alias="amountUsedEOD")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
