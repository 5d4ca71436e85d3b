"""
Test configuration and fixtures for the PrintERP ledger tests.
"""
import os
import pytest
import pytest_asyncio
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from printerp.main import app
from printerp.db.base import Base, get_db, create_engine_from_url
from printerp.core.security import create_access_token
from printerp.models.account import Account, AccountType
from printerp.models.financial_period import FinancialPeriod, PeriodStatus, PeriodType
from printerp.models.order import Order


# Use a file-based SQLite DB to avoid :memory: multiple-connection issues
# with SQLAlchemy + aiosqlite (each new connection would see an empty DB).
TEST_DB_FILE = "./test_ledger.db"
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_FILE}"

TEST_USER_ID = "test-user"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_engine_from_url(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()

    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client sharing the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def test_user_token() -> str:
    """Create an access token for the test user."""
    return create_access_token(TEST_USER_ID)


@pytest.fixture
def auth_headers(test_user_token: str) -> dict:
    """Get authorization headers for the test user."""
    return {"Authorization": f"Bearer {test_user_token}"}


@pytest.fixture
def balance_of(db_session: AsyncSession):
    """Read an account balance back from the database, bypassing the identity map."""

    async def _balance_of(account_id: str) -> Decimal:
        result = await db_session.execute(
            select(Account)
            .where(Account.id == account_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one().balance

    return _balance_of


CHART_OF_ACCOUNTS = [
    ("1000", "Cash", AccountType.ASSET, "Cash"),
    ("1100", "Accounts Receivable", AccountType.ASSET, "Accounts Receivable"),
    ("2000", "Accounts Payable", AccountType.LIABILITY, None),
    ("3000", "Owner's Equity", AccountType.EQUITY, None),
    ("4000", "Printing Revenue", AccountType.REVENUE, None),
    ("5000", "Paper and Ink", AccountType.EXPENSE, None),
]


@pytest_asyncio.fixture
async def accounts(db_session: AsyncSession) -> dict[str, Account]:
    """Create a small chart of accounts, keyed by account code."""
    created = {}
    for code, name, account_type, subtype in CHART_OF_ACCOUNTS:
        account = Account(
            code=code,
            name=name,
            account_type=account_type,
            subtype=subtype,
            balance=Decimal("0"),
            is_active=True,
        )
        db_session.add(account)
        created[code] = account
    await db_session.flush()
    return created


@pytest_asyncio.fixture
async def open_period(db_session: AsyncSession) -> FinancialPeriod:
    """Create an open period for January 2024."""
    period = FinancialPeriod(
        name="January 2024",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31),
        period_type=PeriodType.MONTHLY,
        year=2024,
        quarter=1,
        month=1,
        status=PeriodStatus.OPEN,
    )
    db_session.add(period)
    await db_session.flush()
    return period


@pytest_asyncio.fixture
async def closed_period(db_session: AsyncSession) -> FinancialPeriod:
    """Create a closed period for December 2023."""
    period = FinancialPeriod(
        name="December 2023",
        start_date=date(2023, 12, 1),
        end_date=date(2023, 12, 31),
        period_type=PeriodType.MONTHLY,
        year=2023,
        quarter=4,
        month=12,
        status=PeriodStatus.CLOSED,
    )
    db_session.add(period)
    await db_session.flush()
    return period


@pytest_asyncio.fixture
async def test_order(db_session: AsyncSession) -> Order:
    """Create a production order awaiting payment."""
    order = Order(
        order_number="ORD-2024-0001",
        customer_name="Acme Stationery",
        total_amount=Decimal("1000000"),
        production_status="PRINTING",
    )
    db_session.add(order)
    await db_session.flush()
    return order
