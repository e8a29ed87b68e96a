"""End-of-day balance snapshots.

Once a day every account, whatever its status, is copied into a
``BalanceSnapshot`` row. Downstream reports compute daily average balances
from these rows; nothing here reads them back.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.errors import DataAccessError
from app.core.logging_config import EOD_LOGGER_NAME
from app.domain.accounts.enums import ProductType
from app.domain.accounts.models import Account
from app.domain.accounts.repository import AccountStore
from app.domain.snapshots.models import BalanceSnapshot
from app.domain.snapshots.repository import SnapshotStore

logger = logging.getLogger(EOD_LOGGER_NAME)


def snapshot_from_account(account: Account, snapshot_date: date) -> BalanceSnapshot:
    """Deposit products record zero usage; credit products record the consumed amount."""
    if account.product_type == ProductType.PASSIVE.value:
        amount_used = Decimal("0")
    else:
        amount_used = account.amount_used

    return BalanceSnapshot(
        product_id=account.id,
        customer_id=account.customer_id,
        account_type=account.account_type,
        product_type=account.product_type,
        date=snapshot_date,
        balance_eod=account.balance,
        amount_used_eod=amount_used,
    )


class EodSnapshotJob:
    """Write one snapshot per account for a given day in a single batch."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def run(self, today: Optional[date] = None) -> int:
        snapshot_date = today or date.today()
        logger.info("Starting EOD balance snapshot for %s", snapshot_date)

        async with self.session_factory() as session:
            try:
                accounts = await AccountStore(session).find_all()
            except DataAccessError:
                logger.exception("EOD snapshot could not load accounts for %s", snapshot_date)
                return 0

            if not accounts:
                logger.warning("No accounts found; skipping EOD snapshot for %s", snapshot_date)
                return 0

            snapshots = [snapshot_from_account(account, snapshot_date) for account in accounts]
            try:
                written = await SnapshotStore(session).insert_batch(snapshots)
            except DataAccessError:
                logger.exception(
                    "Failed to persist %d EOD snapshots for %s", len(snapshots), snapshot_date
                )
                return 0

        logger.info("EOD snapshot complete: %d accounts recorded for %s", written, snapshot_date)
        return written


def next_run_after(run_at: time, now: datetime) -> datetime:
    """Next occurrence of ``run_at`` strictly after ``now``."""
    target = datetime.combine(now.date(), run_at)
    if target <= now:
        target += timedelta(days=1)
    return target


class EodSnapshotScheduler:
    """Background task running the snapshot job daily at ``EOD_SNAPSHOT_TIME`` (local time)."""

    def __init__(
        self,
        job: EodSnapshotJob,
        run_at: Optional[str] = None,
        *,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        hour, minute = (int(part) for part in (run_at or settings.EOD_SNAPSHOT_TIME).split(":"))
        self.job = job
        self.run_at = time(hour=hour, minute=minute)
        self._now = now
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        logger.info("EOD snapshot scheduled daily at %s", self.run_at.strftime("%H:%M"))
        self._task = asyncio.create_task(self._loop(), name="eod-snapshot")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        next_run = next_run_after(self.run_at, self._now())
        while True:
            delay = max(0.0, (next_run - self._now()).total_seconds())
            logger.debug("Next EOD snapshot at %s (in %.0fs)", next_run, delay)
            await asyncio.sleep(delay)
            try:
                await self.job.run(next_run.date())
            except Exception:  # noqa: BLE001
                logger.exception("EOD snapshot run failed")
            # Never schedule the same slot twice, even if sleep woke early.
            next_run = next_run_after(self.run_at, max(self._now(), next_run))


__all__ = ["EodSnapshotJob", "EodSnapshotScheduler", "next_run_after", "snapshot_from_account"]
