"""FastAPI dependencies wiring the account service together per request."""
from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.domain.accounts.repository import AccountStore
from app.domain.accounts.services import AccountLifecycleManager
from app.domain.snapshots.repository import SnapshotStore
from app.services.customer_directory import CustomerDirectory, CustomerDirectoryClient


def get_customer_directory() -> CustomerDirectory:
    return CustomerDirectoryClient()


async def get_account_manager(
    db: AsyncSession = Depends(get_db),
    directory: CustomerDirectory = Depends(get_customer_directory),
) -> AccountLifecycleManager:
    """Build the lifecycle manager on top of the request's database session."""
    return AccountLifecycleManager(AccountStore(db), SnapshotStore(db), directory)


__all__ = ["get_account_manager", "get_customer_directory"]
