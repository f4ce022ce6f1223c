from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.warning_cache import InMemoryWarningCache
from src.depends import build_container
from src.domain.credit_ledger import CreditLedger


class IntegrationConfig(ApplicationConfig):
    CACHE_BACKEND = "memory"
    CORS_ORIGINS = []
    CREATE_TABLES_ON_STARTUP = False
    PREMIUM_SWEEP_ENABLED = False
    PREMIUM_NOTIFICATION_WEBHOOK = None
    PREMIUM_COMMAND_SYNC_WEBHOOK = None


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create a file-backed SQLite database per test"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'premium.db'}", echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def container(engine, clock):
    container = build_container(
        IntegrationConfig,
        clock=clock,
        engine=engine,
        warning_cache=InMemoryWarningCache(clock=clock),
    )
    yield container
    await container.shutdown()


@pytest_asyncio.fixture
async def client(container):
    """Create test client bound to the test container"""
    from src.api.app import create_app

    app = create_app(IntegrationConfig, container=container)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class Ledgers:
    """Direct access to credit balances for arranging and asserting"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def fund(self, user_id: str, amount: Decimal) -> None:
        async with self.session_factory() as session:
            session.add(CreditLedger(user_id=user_id, balance=amount))
            await session.commit()

    async def set_balance(self, user_id: str, amount: Decimal) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(CreditLedger).where(CreditLedger.user_id == user_id).values(balance=amount)
            )
            await session.commit()

    async def balance(self, user_id: str) -> Decimal:
        async with self.session_factory() as session:
            result = await session.execute(select(CreditLedger.balance).where(CreditLedger.user_id == user_id))
            return result.scalar_one()


@pytest.fixture
def ledgers(session_factory):
    return Ledgers(session_factory)
