"""Rules deciding whether a requested account may be opened.

Evaluation happens in three steps:

1. ``validate_creation_request`` checks the request on its own and fails fast,
   before any external call.
2. ``gather_facts`` asks the account store only for the counts and flags the
   applicable rule needs.
3. A pure rule, picked from ``RULES`` by product type and customer segment,
   turns request + facts into a ``Decision``.

A customer belongs to exactly one segment, so the VIP and PYME rules never
compete with the plain PERSONAL and EMPRESARIAL ones. Counts are read from
the current persisted state; nothing locks them until the account is
inserted, so two concurrent requests may both pass a "one per type" rule.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from app.core.errors import ValidationError
from app.domain.accounts.enums import BANK_ACCOUNT_TYPES, AccountType, ProductType
from app.domain.accounts.repository import AccountStore
from app.domain.accounts.schemas import AccountCreate
from app.domain.customers.schemas import CustomerProfile, CustomerSegment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    accepted: bool
    reason: Optional[str] = None

    @classmethod
    def accept(cls) -> "Decision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str) -> "Decision":
        return cls(accepted=False, reason=reason)


@dataclass(frozen=True)
class EligibilityFacts:
    """Snapshot of the customer's current holdings relevant to a request."""

    active_products: int = 0
    same_type_accounts: int = 0
    has_active_credit_card: bool = False


Rule = Callable[[AccountCreate, EligibilityFacts], Decision]


def validate_creation_request(request: AccountCreate) -> None:
    """Raise ``ValidationError`` for requests that can be rejected without any lookup."""
    if not request.customer_id or not request.customer_id.strip():
        raise ValidationError("customerId is required.")

    if request.balance is None:
        raise ValidationError("Initial balance cannot be null.")

    if request.account_type in BANK_ACCOUNT_TYPES and request.balance < 0:
        raise ValidationError(
            "Bank accounts (Savings, Current, Fixed Term) require an initial balance of zero or greater."
        )

    if request.product_type == ProductType.PASSIVE:
        if request.account_type is None:
            raise ValidationError("Passive products require an accountType.")
        if request.account_type == AccountType.FIXED_TERM and request.specific_deposit_date is None:
            raise ValidationError("Fixed-term deposits require a specific deposit date.")

    if request.amount_used is not None and request.amount_used < 0:
        raise ValidationError("amountUsed cannot be negative.")


# --- Credit (ACTIVE) rules ---


def personal_credit_rule(request: AccountCreate, facts: EligibilityFacts) -> Decision:
    if facts.active_products >= 1:
        return Decision.reject("A personal customer cannot have more than one active credit product.")
    return Decision.accept()


def unrestricted_rule(request: AccountCreate, facts: EligibilityFacts) -> Decision:
    return Decision.accept()


# --- Deposit (PASSIVE) rules ---


def vip_deposit_rule(request: AccountCreate, facts: EligibilityFacts) -> Decision:
    account_type = request.account_type
    if account_type != AccountType.SAVINGS:
        if facts.same_type_accounts >= 1:
            return Decision.reject(
                f"A VIP customer can only have one {account_type.value} account (excluding savings)."
            )
        return Decision.accept()

    if not facts.has_active_credit_card:
        return Decision.reject("A VIP customer must hold an active credit card to open a VIP savings account.")
    if facts.same_type_accounts >= 1:
        return Decision.reject("A VIP customer can only have one VIP savings account.")
    return Decision.accept()


def pyme_deposit_rule(request: AccountCreate, facts: EligibilityFacts) -> Decision:
    account_type = request.account_type
    if account_type != AccountType.CURRENT:
        if account_type in (AccountType.SAVINGS, AccountType.FIXED_TERM):
            return Decision.reject("A PYME customer cannot have savings or fixed-term deposit accounts.")
        return Decision.accept()

    if not facts.has_active_credit_card:
        return Decision.reject("A PYME customer must hold an active credit card to open a PYME current account.")
    if not request.holders:
        return Decision.reject("A business account must have at least one holder.")
    return Decision.accept()


def personal_deposit_rule(request: AccountCreate, facts: EligibilityFacts) -> Decision:
    if facts.same_type_accounts >= 1:
        return Decision.reject(f"A personal customer can only have one {request.account_type.value} account.")
    return Decision.accept()


def business_deposit_rule(request: AccountCreate, facts: EligibilityFacts) -> Decision:
    if not request.holders:
        return Decision.reject("A business account must have at least one holder.")
    if request.account_type in (AccountType.SAVINGS, AccountType.FIXED_TERM):
        return Decision.reject("A business customer cannot have savings or fixed-term deposit accounts.")
    return Decision.accept()


RULES: dict[ProductType, dict[CustomerSegment, Rule]] = {
    ProductType.ACTIVE: {
        CustomerSegment.PERSONAL: personal_credit_rule,
    },
    ProductType.PASSIVE: {
        CustomerSegment.VIP: vip_deposit_rule,
        CustomerSegment.PYME: pyme_deposit_rule,
        CustomerSegment.PERSONAL: personal_deposit_rule,
        CustomerSegment.EMPRESARIAL: business_deposit_rule,
    },
}


def select_rule(product_type: ProductType, segment: CustomerSegment) -> Rule:
    return RULES[product_type].get(segment, unrestricted_rule)


async def gather_facts(
    request: AccountCreate,
    profile: CustomerProfile,
    store: AccountStore,
) -> EligibilityFacts:
    """Query only what the rule for this product/segment pair looks at."""
    customer_id = request.customer_id
    segment = profile.segment

    if request.product_type == ProductType.ACTIVE:
        if segment == CustomerSegment.PERSONAL:
            active = await store.count_by_customer_and_product_type(customer_id, ProductType.ACTIVE)
            return EligibilityFacts(active_products=active)
        return EligibilityFacts()

    account_type = request.account_type
    needs_card = (segment == CustomerSegment.VIP and account_type == AccountType.SAVINGS) or (
        segment == CustomerSegment.PYME and account_type == AccountType.CURRENT
    )
    needs_count = segment in (CustomerSegment.VIP, CustomerSegment.PERSONAL)

    has_card = False
    if needs_card:
        has_card = await store.has_active_credit_card(customer_id)
        if not has_card:
            # The card gate rejects first; the count would not change the outcome.
            return EligibilityFacts(has_active_credit_card=False)

    same_type = 0
    if needs_count:
        same_type = await store.count_by_customer_and_account_type(customer_id, account_type)

    return EligibilityFacts(same_type_accounts=same_type, has_active_credit_card=has_card)


async def evaluate(
    request: AccountCreate,
    profile: CustomerProfile,
    store: AccountStore,
) -> Decision:
    """Accept or reject ``request`` for the customer described by ``profile``."""
    facts = await gather_facts(request, profile, store)
    decision = select_rule(request.product_type, profile.segment)(request, facts)

    if not decision.accepted:
        logger.info(
            "Rejected %s/%s for customer %s (%s): %s",
            request.product_type.value,
            request.account_type.value if request.account_type else "-",
            request.customer_id,
            profile.segment.value,
            decision.reason,
        )
    return decision
