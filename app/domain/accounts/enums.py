"""Enumeration types for account products."""
from __future__ import annotations

from enum import Enum


class ProductType(str, Enum):
    PASSIVE = "PASSIVE"  # deposit accounts
    ACTIVE = "ACTIVE"  # credit products


class AccountType(str, Enum):
    SAVINGS = "SAVINGS"
    CURRENT = "CURRENT"
    FIXED_TERM = "FIXED_TERM"


class CreditType(str, Enum):
    PERSONAL = "PERSONAL"
    BUSINESS = "BUSINESS"
    CREDIT_CARD = "CREDIT_CARD"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


# Account types subject to the "opening balance >= 0" rule.
BANK_ACCOUNT_TYPES = frozenset({AccountType.SAVINGS, AccountType.CURRENT, AccountType.FIXED_TERM})
