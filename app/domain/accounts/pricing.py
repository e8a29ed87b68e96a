"""Fee and limit profile assigned to newly opened accounts."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from app.domain.accounts.enums import AccountType, ProductType
from app.domain.accounts.schemas import AccountCreate
from app.domain.customers.schemas import CustomerProfile, CustomerSegment


@dataclass(frozen=True)
class FeeSchedule:
    """Tariff constants used when opening accounts."""

    maintenance_fee: Decimal = Decimal("10.00")
    required_daily_average: Decimal = Decimal("0")
    free_transaction_limit: int = 4
    transaction_fee: Decimal = Decimal("0.50")
    initial_monthly_transactions: int = 0

    # VIP savings accounts
    vip_required_daily_average: Decimal = Decimal("1000.00")
    vip_maintenance_fee: Decimal = Decimal("0")
    vip_free_transaction_limit: int = 999
    vip_transaction_fee: Decimal = Decimal("0")

    # PYME current accounts
    pyme_free_transaction_limit: int = 100
    pyme_transaction_fee: Decimal = Decimal("0.10")


DEFAULT_FEE_SCHEDULE = FeeSchedule()


@dataclass(frozen=True)
class AccountAttributes:
    maintenance_fee_amount: Decimal
    required_daily_average: Decimal
    free_transaction_limit: Optional[int] = None
    transaction_fee_amount: Optional[Decimal] = None
    current_monthly_transactions: Optional[int] = None


def assign_attributes(
    request: AccountCreate,
    profile: CustomerProfile,
    schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
) -> AccountAttributes:
    """Return the fee/limit/monitoring profile for a newly accepted account.

    Defaults apply to everyone; transaction limits only exist on deposit
    (PASSIVE) products. VIP savings and PYME current deposit accounts then
    override parts of the default profile.
    """
    maintenance_fee = schedule.maintenance_fee
    required_average = schedule.required_daily_average
    free_limit: Optional[int] = None
    txn_fee: Optional[Decimal] = None
    counter: Optional[int] = None

    if request.product_type == ProductType.PASSIVE:
        free_limit = schedule.free_transaction_limit
        txn_fee = schedule.transaction_fee
        counter = schedule.initial_monthly_transactions

        if profile.segment == CustomerSegment.VIP and request.account_type == AccountType.SAVINGS:
            required_average = schedule.vip_required_daily_average
            maintenance_fee = schedule.vip_maintenance_fee
            free_limit = schedule.vip_free_transaction_limit
            txn_fee = schedule.vip_transaction_fee
        elif profile.segment == CustomerSegment.PYME and request.account_type == AccountType.CURRENT:
            free_limit = schedule.pyme_free_transaction_limit
            txn_fee = schedule.pyme_transaction_fee

    return AccountAttributes(
        maintenance_fee_amount=maintenance_fee,
        required_daily_average=required_average,
        free_transaction_limit=free_limit,
        transaction_fee_amount=txn_fee,
        current_monthly_transactions=counter,
    )
