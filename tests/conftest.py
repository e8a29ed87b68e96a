"""Pytest configuration and fixtures."""
from __future__ import annotations

import random
from typing import AsyncIterator

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.database import Base, apply_sqlite_pragmas, get_db
from app.core.dependencies import get_customer_directory
from app.core.errors import CustomerNotFoundError
from app.core.fault_tolerance import reset_breakers
from app.domain.accounts.models import Account  # noqa: F401
from app.domain.accounts.repository import AccountStore
from app.domain.accounts.services import AccountLifecycleManager
from app.domain.customers.schemas import CustomerProfile, CustomerSegment
from app.domain.snapshots.models import BalanceSnapshot  # noqa: F401
from app.domain.snapshots.repository import SnapshotStore


class FakeCustomerDirectory:
    """In-memory customer directory recording every lookup."""

    def __init__(self, profiles: dict[str, CustomerProfile]) -> None:
        self.profiles = profiles
        self.calls: list[str] = []

    def add(self, customer_id: str, segment: CustomerSegment) -> CustomerProfile:
        profile = CustomerProfile(id=customer_id, segment=segment)
        self.profiles[customer_id] = profile
        return profile

    async def get_customer_by_id(self, customer_id: str) -> CustomerProfile:
        self.calls.append(customer_id)
        profile = self.profiles.get(customer_id)
        if profile is None:
            raise CustomerNotFoundError(customer_id)
        return profile


@pytest.fixture(autouse=True)
def _fresh_breakers():
    """Each test starts with closed circuits."""
    reset_breakers()
    yield
    reset_breakers()


@pytest.fixture
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """File-backed SQLite so concurrent sessions really contend for the database."""
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'accounts.db'}")
    event.listen(db_engine.sync_engine, "connect", apply_sqlite_pragmas)

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
def directory() -> FakeCustomerDirectory:
    fake = FakeCustomerDirectory({})
    fake.add("c1", CustomerSegment.PERSONAL)
    fake.add("cust-personal", CustomerSegment.PERSONAL)
    fake.add("cust-business", CustomerSegment.EMPRESARIAL)
    fake.add("cust-vip", CustomerSegment.VIP)
    fake.add("cust-pyme", CustomerSegment.PYME)
    return fake


@pytest.fixture
def account_store(session) -> AccountStore:
    return AccountStore(session)


@pytest.fixture
def manager(session, directory) -> AccountLifecycleManager:
    return AccountLifecycleManager(
        AccountStore(session),
        SnapshotStore(session),
        directory,
        rng=random.Random(42),
    )


@pytest.fixture
async def client(session_factory, directory) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client bound to the ASGI app with the test database and directory."""
    from main import app

    async def _test_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as db_session:
            yield db_session

    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_customer_directory] = lambda: directory

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http

    app.dependency_overrides.clear()
