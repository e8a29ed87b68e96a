"""Account number generation.

Numbers have the form ``PPPP-NNNNNNNN``: a bank prefix identifying the product
followed by eight random digits. Uniqueness is enforced by the unique index
on ``accounts.account_number``; callers regenerate on conflict.
"""
from __future__ import annotations

import logging
import random
from typing import Optional

from app.domain.accounts.enums import AccountType, ProductType

logger = logging.getLogger(__name__)

CREDIT_PREFIX = "0300-"
FALLBACK_PASSIVE_PREFIX = "0299-"
PASSIVE_PREFIXES: dict[AccountType, str] = {
    AccountType.SAVINGS: "0200-",
    AccountType.CURRENT: "0201-",
    AccountType.FIXED_TERM: "0202-",
}

SUFFIX_MIN = 10_000_000
SUFFIX_MAX = 99_999_999


def account_number_prefix(product_type: ProductType, account_type: Optional[AccountType]) -> str:
    if product_type == ProductType.ACTIVE:
        return CREDIT_PREFIX

    prefix = PASSIVE_PREFIXES.get(account_type) if account_type is not None else None
    if prefix is None:
        logger.warning("Using fallback prefix %s for passive account type %s", FALLBACK_PASSIVE_PREFIX, account_type)
        return FALLBACK_PASSIVE_PREFIX
    return prefix


def generate_account_number(
    product_type: ProductType,
    account_type: Optional[AccountType],
    rng: Optional[random.Random] = None,
) -> str:
    """Return a new account number for the given product."""
    source = rng or random
    number = f"{account_number_prefix(product_type, account_type)}{source.randint(SUFFIX_MIN, SUFFIX_MAX)}"
    logger.debug("Generated account number %s for %s/%s", number, product_type, account_type)
    return number
