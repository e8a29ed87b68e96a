"""Account lifecycle: opening, lookups, closure, balance and counter updates."""
from __future__ import annotations

import logging
import random
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from app.core.config import settings
from app.core.errors import AccountNotFoundError, BusinessRuleError, DataAccessError, ValidationError
from app.core.fault_tolerance import fault_boundary
from app.domain.accounts.eligibility import evaluate, validate_creation_request
from app.domain.accounts.enums import AccountStatus, ProductType
from app.domain.accounts.models import Account
from app.domain.accounts.numbering import generate_account_number
from app.domain.accounts.pricing import DEFAULT_FEE_SCHEDULE, AccountAttributes, FeeSchedule, assign_attributes
from app.domain.accounts.repository import AccountNumberConflictError, AccountStore
from app.domain.accounts.schemas import AccountCreate, TransactionStatusOut
from app.domain.snapshots.repository import SnapshotStore
from app.domain.snapshots.schemas import DailyBalanceOut
from app.services.customer_directory import CustomerDirectory

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "The account service is temporarily unavailable."
COUNTER_UNAVAILABLE_MESSAGE = "The transaction counter service is temporarily unavailable."
HISTORY_UNAVAILABLE_MESSAGE = "The daily balance history service is temporarily unavailable."


def parse_account_id(account_id: str) -> str:
    """Normalize an account id to its 32-char hex form or raise ``ValidationError``."""
    try:
        return uuid.UUID(str(account_id)).hex
    except ValueError:
        raise ValidationError(f"Invalid account id '{account_id}'.") from None


class AccountLifecycleManager:
    """Orchestrates the account lifecycle over the account and snapshot stores.

    Only ``create`` consults the customer directory; every other operation
    talks to the stores directly. Read, query and counter operations run
    behind a fault boundary that converts timeouts and unexpected failures
    into ``ServiceUnavailableError``.
    """

    def __init__(
        self,
        accounts: AccountStore,
        snapshots: SnapshotStore,
        directory: CustomerDirectory,
        *,
        fee_schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
        max_number_attempts: Optional[int] = None,
        rng: Optional[random.Random] = None,
        now: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.accounts = accounts
        self.snapshots = snapshots
        self.directory = directory
        self.fee_schedule = fee_schedule
        self.max_number_attempts = max(1, max_number_attempts or settings.ACCOUNT_NUMBER_MAX_ATTEMPTS)
        self._rng = rng
        self._now = now

    # --- creation ---

    async def create(self, request: AccountCreate) -> Account:
        """Validate, check eligibility, assign the fee profile and persist a new account."""
        logger.info("Creating %s account for customer %s", request.product_type.value, request.customer_id)

        validate_creation_request(request)

        profile = await self.directory.get_customer_by_id(request.customer_id)

        decision = await evaluate(request, profile, self.accounts)
        if not decision.accepted:
            raise ValidationError(decision.reason or "The customer is not eligible for this product.")

        attributes = assign_attributes(request, profile, self.fee_schedule)

        for attempt in range(1, self.max_number_attempts + 1):
            account = self._build_account(request, attributes)
            try:
                created = await self.accounts.insert(account)
            except AccountNumberConflictError:
                logger.warning(
                    "Account number collision for customer %s (attempt %d/%d)",
                    request.customer_id,
                    attempt,
                    self.max_number_attempts,
                )
                continue

            logger.info(
                "Opened account %s (%s) for customer %s [%s]",
                created.id,
                created.account_number,
                created.customer_id,
                profile.segment.value,
            )
            return created

        raise DataAccessError("Could not allocate a unique account number.")

    def _build_account(self, request: AccountCreate, attributes: AccountAttributes) -> Account:
        amount_used = request.amount_used
        if amount_used is None and request.product_type == ProductType.ACTIVE:
            amount_used = Decimal("0")

        return Account(
            id=uuid.uuid4().hex,
            customer_id=request.customer_id,
            account_number=generate_account_number(request.product_type, request.account_type, self._rng),
            product_type=request.product_type.value,
            account_type=request.account_type.value if request.account_type else None,
            credit_type=request.credit_type.value if request.credit_type else None,
            status=AccountStatus.ACTIVE.value,
            balance=request.balance,
            amount_used=amount_used,
            opening_date=self._now(),
            specific_deposit_date=request.specific_deposit_date,
            payment_day_of_month=request.payment_day_of_month,
            maintenance_fee_amount=attributes.maintenance_fee_amount,
            required_daily_average=attributes.required_daily_average,
            free_transaction_limit=attributes.free_transaction_limit,
            transaction_fee_amount=attributes.transaction_fee_amount,
            current_monthly_transactions=attributes.current_monthly_transactions,
            holders=list(request.holders),
            signatories=list(request.signatories),
        )

    # --- lookups ---

    async def _load(self, account_id: str) -> Account:
        account = await self.accounts.find_by_id(parse_account_id(account_id))
        if account is None:
            raise AccountNotFoundError(f"Account not found with ID: {account_id}")
        return account

    @fault_boundary("account-by-id", UNAVAILABLE_MESSAGE)
    async def get_by_id(self, account_id: str) -> Account:
        return await self._load(account_id)

    @fault_boundary("account-by-number", UNAVAILABLE_MESSAGE)
    async def get_by_number(self, account_number: str) -> Account:
        account = await self.accounts.find_by_account_number(account_number)
        if account is None:
            logger.info("Account with number %s not found", account_number)
            raise AccountNotFoundError(f"Account not found with number: {account_number}")
        return account

    @fault_boundary("customer-accounts", UNAVAILABLE_MESSAGE)
    async def list_by_customer(self, customer_id: str) -> list[Account]:
        if not customer_id or not customer_id.strip():
            raise ValidationError("The 'customerId' parameter is required.")
        return await self.accounts.find_by_customer_id(customer_id.strip())

    # --- state changes ---

    async def close(self, account_id: str) -> Account:
        """Mark the account INACTIVE once its terminal balance is zero.

        Closing an already inactive account re-checks the balance and succeeds.
        """
        account = await self._load(account_id)

        if account.product_type == ProductType.PASSIVE.value:
            if Decimal(account.balance or 0) != 0:
                raise ValidationError("Cannot close a passive account with a non-zero balance.")
        elif Decimal(account.amount_used or 0) != 0:
            raise ValidationError("Cannot close an active account with a non-zero amount used.")

        account.status = AccountStatus.INACTIVE.value
        closed = await self.accounts.replace(account)
        logger.info("Closed account %s for customer %s", closed.id, closed.customer_id)
        return closed

    async def update_balance(
        self,
        account_id: str,
        balance: Decimal,
        amount_used: Optional[Decimal],
    ) -> Account:
        """Overwrite balance and amount used with the given absolute values."""
        account = await self._load(account_id)
        account.balance = balance
        account.amount_used = amount_used
        updated = await self.accounts.replace(account)
        logger.info("Updated balance of account %s", updated.id)
        return updated

    @fault_boundary("transaction-status", UNAVAILABLE_MESSAGE)
    async def get_transaction_status(self, account_id: str) -> TransactionStatusOut:
        account = await self._load(account_id)
        if account.product_type != ProductType.PASSIVE.value:
            raise BusinessRuleError("Only passive (deposit) accounts have transaction limits.")

        return TransactionStatusOut(
            free_transaction_limit=account.free_transaction_limit,
            current_monthly_transactions=account.current_monthly_transactions,
            transaction_fee_amount=account.transaction_fee_amount,
        )

    @fault_boundary("transaction-counter", COUNTER_UNAVAILABLE_MESSAGE)
    async def increment_transaction_counter(self, account_id: str) -> None:
        key = parse_account_id(account_id)
        if await self.accounts.increment_monthly_counter(key):
            return

        # Nothing matched: either no such account or a credit product without a counter.
        if await self.accounts.find_by_id(key) is None:
            raise AccountNotFoundError(f"Account not found with ID: {account_id}")
        raise BusinessRuleError("Only passive (deposit) accounts have a transaction counter.")

    # --- history ---

    @fault_boundary("daily-balances", HISTORY_UNAVAILABLE_MESSAGE)
    async def get_daily_balances(
        self,
        customer_id: str,
        start_date: date,
        end_date: date,
    ) -> list[DailyBalanceOut]:
        """Return the customer's end-of-day records in ``[start_date, end_date]``, oldest first."""
        logger.info("Daily balances requested for customer %s [%s - %s]", customer_id, start_date, end_date)

        if not customer_id or not customer_id.strip():
            raise ValidationError("The customer id is required.")
        if start_date > end_date:
            raise ValidationError("startDate must not be after endDate.")

        snapshots = await self.snapshots.find_by_customer_and_date_range(
            customer_id.strip(), start_date, end_date
        )
        if not snapshots:
            logger.info("No balance snapshots for customer %s in range", customer_id)
        return [DailyBalanceOut.model_validate(snapshot) for snapshot in snapshots]


__all__ = ["AccountLifecycleManager", "parse_account_id"]
