"""
Test Suite Configuration

Seeds a file-backed SQLite database with both order sources. Each channel
aggregation opens its own session, so the database must accept several
concurrent connections (an in-memory database would not be shared).

Seeded week: Monday 2024-03-04 .. Friday 2024-03-08, restaurants at UTC+11.
"""
import json
from contextlib import asynccontextmanager
from datetime import date, time
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sales_dashboard.analytics.catalog import CatalogStore
from sales_dashboard.analytics.service import SalesAnalyticsService
from sales_dashboard.database.models import (
    Base,
    BiteOrder,
    BiteOrderItem,
    Transaction,
    TransactionItem,
)
from sales_dashboard.serving.api.main import create_api_app

UTC_OFFSET_SECONDS = 11 * 3600

# 2024-03-04 00:00:00 UTC
MONDAY_UTC = 1709510400
DAY = 86400
HOUR = 3600

STORE_NAMES = {"wagga": "Wagga", "preston": "Preston"}


def _transactions():
    return [
        Transaction(
            id=1, store_id="wagga", transaction_date=date(2024, 3, 4), transaction_time=time(12, 15),
            day_of_week=1, total_amount=Decimal("30.00"),
            items=[
                TransactionItem(product_id=101, quantity=2, unit_price=Decimal("10.00")),
                TransactionItem(product_id=102, quantity=1, unit_price=Decimal("10.00")),
            ],
        ),
        Transaction(
            id=2, store_id="preston", transaction_date=date(2024, 3, 6), transaction_time=time(12, 40),
            day_of_week=3, total_amount=Decimal("25.00"),
            items=[
                TransactionItem(product_id=101, quantity=1, unit_price=Decimal("10.00")),
                TransactionItem(product_id=103, quantity=1, unit_price=Decimal("15.00")),
            ],
        ),
        Transaction(
            id=3, store_id="wagga", transaction_date=date(2024, 3, 6), transaction_time=time(9, 5),
            day_of_week=3, total_amount=Decimal("12.00"),
            items=[
                TransactionItem(product_id=104, quantity=1, unit_price=Decimal("12.00")),
                # free item and refund line
                TransactionItem(product_id=105, quantity=1, unit_price=Decimal("0.00")),
                TransactionItem(product_id=101, quantity=-1, unit_price=Decimal("10.00")),
            ],
        ),
        Transaction(
            id=4, store_id="wagga", transaction_date=date(2024, 3, 10), transaction_time=time(18, 0),
            day_of_week=7, total_amount=Decimal("100.00"),
            items=[
                TransactionItem(product_id=101, quantity=10, unit_price=Decimal("10.00")),
            ],
        ),
        Transaction(
            id=5, store_id="preston", transaction_date=date(2024, 3, 7), transaction_time=None,
            day_of_week=None, total_amount=Decimal("8.00"),
            items=[
                TransactionItem(product_id=999, quantity=1, unit_price=Decimal("8.00")),
            ],
        ),
    ]


def _bite_orders():
    return [
        # local Wed 2024-03-06 12:30
        BiteOrder(
            order_id="bite-1", site_id="641", ready_at_time=MONDAY_UTC + 2 * DAY + HOUR + 1800,
            total_price=Decimal("40.00"),
            items=[
                BiteOrderItem(name="Burger", quantity=2, line_price=Decimal("30.00")),
                BiteOrderItem(name="Chips", quantity=1, line_price=Decimal("10.00")),
            ],
        ),
        # local Tue 2024-03-05 09:00
        BiteOrder(
            order_id="bite-2", site_id="1837", ready_at_time=MONDAY_UTC + 22 * HOUR,
            total_price=Decimal("20.00"),
            items=[
                BiteOrderItem(name="Burger", quantity=1, line_price=Decimal("15.00")),
                BiteOrderItem(name="Soda", quantity=1, line_price=Decimal("5.00")),
                BiteOrderItem(name="Sauce", quantity=0, line_price=Decimal("0.00")),
                BiteOrderItem(name=None, quantity=1, line_price=Decimal("0.00")),
            ],
        ),
        # 2024-03-20, outside the seeded week
        BiteOrder(
            order_id="bite-3", site_id="641", ready_at_time=MONDAY_UTC + 16 * DAY + 12 * HOUR,
            total_price=Decimal("50.00"),
            items=[
                BiteOrderItem(name="Burger", quantity=3, line_price=Decimal("50.00")),
            ],
        ),
        # Friday 20:00 UTC is already local Sat 2024-03-09 07:00
        BiteOrder(
            order_id="bite-4", site_id="641", ready_at_time=MONDAY_UTC + 4 * DAY + 20 * HOUR,
            total_price=Decimal("5.00"),
            items=[
                BiteOrderItem(name="Soda", quantity=1, line_price=Decimal("5.00")),
            ],
        ),
    ]


@pytest.fixture
async def test_engine(tmp_path: Path):
    """Create seeded test database engine"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'sales.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        session.add_all(_transactions())
        session.add_all(_bite_orders())
        await session.commit()

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Per-call session context manager, shaped like database.get_db"""
    factory = async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session
            await session.rollback()

    return get_test_db


@pytest.fixture
def catalog_sources(tmp_path: Path) -> Dict[str, Path]:
    """Write one catalog file per in-store location"""
    wagga = [
        {"Id": 101, "Name": "Cheeseburger", "SalePrice": 10.5, "CostPrice": 4.25},
        {"Id": 102, "Name": "Fries", "SalePrice": 4.5, "CostPrice": 1.25},
        {"Id": 104, "Name": "Milkshake", "SalePrice": 6.5, "CostPrice": 2.5},
    ]
    preston = [
        {"Id": 101, "Name": "Preston Cheeseburger", "SalePrice": 11.5, "CostPrice": 4.75},
        {"Id": 103, "Name": "Chicken Wrap", "SalePrice": 15.5, "CostPrice": 6.0},
    ]

    catalog_dir = tmp_path / "catalog"
    catalog_dir.mkdir()
    (catalog_dir / "wagga_products.json").write_text(json.dumps(wagga), encoding="utf-8")
    (catalog_dir / "preston_products.json").write_text(json.dumps(preston), encoding="utf-8")

    return {
        "wagga": catalog_dir / "wagga_products.json",
        "preston": catalog_dir / "preston_products.json",
    }


@pytest.fixture
def catalog_store(catalog_sources) -> CatalogStore:
    store = CatalogStore(catalog_sources)
    store.reload()
    return store


@pytest.fixture
def analytics_service(catalog_store, session_factory) -> SalesAnalyticsService:
    return SalesAnalyticsService(
        catalog_store=catalog_store,
        store_names=STORE_NAMES,
        utc_offset_seconds=UTC_OFFSET_SECONDS,
        session_factory=session_factory,
    )


@pytest.fixture
def api_app(analytics_service):
    """Dashboard app without lifespan, wired to the test service"""
    app = create_api_app()
    app.state.analytics_service = analytics_service
    return app


@pytest.fixture
async def client(api_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=api_app), base_url="http://test") as ac:
        yield ac
