from decimal import Decimal

import pytest

from app.domain.accounts.enums import AccountType, CreditType, ProductType
from app.domain.accounts.pricing import DEFAULT_FEE_SCHEDULE, FeeSchedule, assign_attributes
from app.domain.accounts.schemas import AccountCreate
from app.domain.customers.schemas import CustomerProfile, CustomerSegment


def _profile(segment: CustomerSegment) -> CustomerProfile:
    return CustomerProfile(id="cust-1", segment=segment)


def _deposit(account_type: AccountType) -> AccountCreate:
    return AccountCreate(
        customer_id="cust-1",
        product_type=ProductType.PASSIVE,
        account_type=account_type,
        balance=Decimal("100"),
    )


@pytest.mark.parametrize("segment", list(CustomerSegment))
def test_credit_products_have_no_transaction_limits(segment):
    request = AccountCreate(
        customer_id="cust-1",
        product_type=ProductType.ACTIVE,
        credit_type=CreditType.CREDIT_CARD,
        balance=Decimal("5000"),
    )

    attributes = assign_attributes(request, _profile(segment))

    assert attributes.maintenance_fee_amount == Decimal("10.00")
    assert attributes.required_daily_average == Decimal("0")
    assert attributes.free_transaction_limit is None
    assert attributes.transaction_fee_amount is None
    assert attributes.current_monthly_transactions is None


def test_default_deposit_profile():
    attributes = assign_attributes(_deposit(AccountType.CURRENT), _profile(CustomerSegment.PERSONAL))

    assert attributes.maintenance_fee_amount == Decimal("10.00")
    assert attributes.required_daily_average == Decimal("0")
    assert attributes.free_transaction_limit == 4
    assert attributes.transaction_fee_amount == Decimal("0.50")
    assert attributes.current_monthly_transactions == 0


def test_vip_savings_profile():
    attributes = assign_attributes(_deposit(AccountType.SAVINGS), _profile(CustomerSegment.VIP))

    assert attributes.required_daily_average == Decimal("1000.00")
    assert attributes.maintenance_fee_amount == Decimal("0")
    assert attributes.free_transaction_limit == 999
    assert attributes.transaction_fee_amount == Decimal("0")
    assert attributes.current_monthly_transactions == 0


def test_vip_current_account_keeps_defaults():
    attributes = assign_attributes(_deposit(AccountType.CURRENT), _profile(CustomerSegment.VIP))

    assert attributes.free_transaction_limit == 4
    assert attributes.maintenance_fee_amount == Decimal("10.00")


def test_pyme_current_profile():
    attributes = assign_attributes(_deposit(AccountType.CURRENT), _profile(CustomerSegment.PYME))

    assert attributes.free_transaction_limit == 100
    assert attributes.transaction_fee_amount == Decimal("0.10")
    assert attributes.maintenance_fee_amount == Decimal("10.00")
    assert attributes.required_daily_average == Decimal("0")


def test_custom_schedule_is_used():
    schedule = FeeSchedule(maintenance_fee=Decimal("7.25"), free_transaction_limit=10)

    attributes = assign_attributes(_deposit(AccountType.SAVINGS), _profile(CustomerSegment.PERSONAL), schedule)

    assert attributes.maintenance_fee_amount == Decimal("7.25")
    assert attributes.free_transaction_limit == 10
    assert DEFAULT_FEE_SCHEDULE.free_transaction_limit == 4
