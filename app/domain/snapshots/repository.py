"""Persistence operations over end-of-day balance snapshots."""
from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DataAccessError
from app.domain.snapshots.models import BalanceSnapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def insert_batch(self, snapshots: Sequence[BalanceSnapshot]) -> int:
        """Persist all snapshots in one transaction; nothing is written on failure."""
        self.db.add_all(snapshots)
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Snapshot store failed to insert %d snapshots: %s", len(snapshots), exc)
            raise DataAccessError("Failed to persist balance snapshots.") from exc
        return len(snapshots)

    async def find_by_customer_and_date_range(
        self,
        customer_id: str,
        start_date: date,
        end_date: date,
    ) -> list[BalanceSnapshot]:
        """Return the customer's snapshots with ``start_date <= date <= end_date``, oldest first."""
        try:
            result = await self.db.execute(
                select(BalanceSnapshot)
                .where(
                    BalanceSnapshot.customer_id == customer_id,
                    BalanceSnapshot.date >= start_date,
                    BalanceSnapshot.date <= end_date,
                )
                .order_by(BalanceSnapshot.date.asc(), BalanceSnapshot.product_id)
            )
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Snapshot store failed to query history for %s: %s", customer_id, exc)
            raise DataAccessError("Failed to retrieve daily balance history.") from exc
        return list(result.scalars().all())
