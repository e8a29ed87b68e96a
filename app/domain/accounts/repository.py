"""Persistence operations over account records."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DataAccessError
from app.domain.accounts.enums import AccountStatus, AccountType, CreditType, ProductType
from app.domain.accounts.models import Account

logger = logging.getLogger(__name__)


class AccountNumberConflictError(DataAccessError):
    """The generated account number is already taken; regenerate and retry."""


class AccountStore:
    """Account queries and writes on top of an async session.

    Every SQLAlchemy failure leaves the session rolled back and surfaces as a
    ``DataAccessError``.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @asynccontextmanager
    async def _data_access(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Account store failed to %s: %s", action, exc)
            raise DataAccessError(f"Failed to {action}.") from exc

    async def insert(self, account: Account) -> Account:
        self.db.add(account)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.warning("Account number %s already in use", account.account_number)
            raise AccountNumberConflictError(
                f"Account number {account.account_number} is already in use."
            ) from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Account store failed to insert account: %s", exc)
            raise DataAccessError("Failed to insert account.") from exc

        await self.db.refresh(account)
        return account

    async def find_by_id(self, account_id: str) -> Optional[Account]:
        async with self._data_access("load account"):
            # Counter increments bypass the identity map; always reload the row.
            return await self.db.get(Account, account_id, populate_existing=True)

    async def find_by_account_number(self, account_number: str) -> Optional[Account]:
        async with self._data_access("load account by number"):
            result = await self.db.execute(
                select(Account).where(Account.account_number == account_number)
            )
            return result.scalar_one_or_none()

    async def find_by_customer_id(self, customer_id: str) -> list[Account]:
        async with self._data_access("list customer accounts"):
            result = await self.db.execute(
                select(Account)
                .where(Account.customer_id == customer_id)
                .order_by(Account.opening_date, Account.id)
            )
            return list(result.scalars().all())

    async def find_all(self) -> list[Account]:
        async with self._data_access("list accounts"):
            result = await self.db.execute(select(Account).order_by(Account.opening_date, Account.id))
            return list(result.scalars().all())

    async def count_by_customer_and_account_type(self, customer_id: str, account_type: AccountType) -> int:
        async with self._data_access("count accounts by type"):
            result = await self.db.execute(
                select(func.count(Account.id)).where(
                    Account.customer_id == customer_id,
                    Account.account_type == account_type.value,
                )
            )
            return result.scalar_one()

    async def count_by_customer_and_product_type(self, customer_id: str, product_type: ProductType) -> int:
        async with self._data_access("count products by type"):
            result = await self.db.execute(
                select(func.count(Account.id)).where(
                    Account.customer_id == customer_id,
                    Account.product_type == product_type.value,
                )
            )
            return result.scalar_one()

    async def has_active_credit_card(self, customer_id: str) -> bool:
        async with self._data_access("check active credit card"):
            result = await self.db.execute(
                select(func.count(Account.id)).where(
                    Account.customer_id == customer_id,
                    Account.product_type == ProductType.ACTIVE.value,
                    Account.credit_type == CreditType.CREDIT_CARD.value,
                    Account.status == AccountStatus.ACTIVE.value,
                )
            )
            return result.scalar_one() >= 1

    async def increment_monthly_counter(self, account_id: str) -> int:
        """Add one to the monthly transaction counter of a deposit account in a single UPDATE.

        Returns the number of matched rows: 0 when the account does not exist
        or is a credit product, which has no counter.
        """
        async with self._data_access("increment transaction counter"):
            result = await self.db.execute(
                update(Account)
                .where(
                    Account.id == account_id,
                    Account.product_type == ProductType.PASSIVE.value,
                )
                .values(current_monthly_transactions=func.coalesce(Account.current_monthly_transactions, 0) + 1)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return result.rowcount or 0

    async def replace(self, account: Account) -> Account:
        async with self._data_access("update account"):
            merged = await self.db.merge(account)
            await self.db.commit()
            await self.db.refresh(merged)
            return merged
