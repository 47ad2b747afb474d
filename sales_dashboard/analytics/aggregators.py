"""
Channel Aggregators

One aggregator per order source. Each computes revenue, order-count,
per-day, per-product and per-(day, hour) facts for its own tables only,
under the channel predicates of a normalized SalesQuery.

Timestamp handling is owned by each channel:
- in-store rows carry a local date, local time of day and local ISO weekday
- online rows carry an epoch-second instant, shifted here by the
  restaurants' fixed UTC offset before day/hour extraction
"""

from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Any, List

import structlog
from sqlalchemy import Integer, Select, cast, extract, func, literal_column, select
from sqlalchemy.engine import Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sales_dashboard.analytics.exceptions import AggregationError
from sales_dashboard.analytics.facts import ActivityCell, DailySales, ProductSales
from sales_dashboard.analytics.filters import Channel, SalesQuery
from sales_dashboard.analytics.predicates import in_store_conditions, online_conditions
from sales_dashboard.database.models import (
    BiteOrder,
    BiteOrderItem,
    Transaction,
    TransactionItem,
)

logger = structlog.get_logger(__name__)

EPOCH_DATE = date(1970, 1, 1)
SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600


def _const(value: int):
    # Inlined rather than bound: the same expression appears in SELECT and
    # GROUP BY, and Postgres only matches them when the text is identical.
    return literal_column(str(int(value)), Integer)


class ChannelAggregator(ABC):
    """Base class for per-channel SQL aggregations"""

    channel: Channel

    async def _execute(self, db: AsyncSession, stmt: Select, operation: str) -> Result[Any]:
        """Run one aggregation, turning data-source failures into AggregationError."""
        try:
            return await db.execute(stmt)
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Channel aggregation failed",
                channel=self.channel.value,
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise AggregationError(self.channel.value, str(e), operation=operation) from e

    @abstractmethod
    async def revenue(self, db: AsyncSession, query: SalesQuery) -> float:
        """Sum of order totals"""

    @abstractmethod
    async def order_count(self, db: AsyncSession, query: SalesQuery) -> int:
        """Number of orders (one row = one order)"""

    @abstractmethod
    async def daily_sales(self, db: AsyncSession, query: SalesQuery) -> List[DailySales]:
        """Sales per local calendar day"""

    @abstractmethod
    async def product_sales(self, db: AsyncSession, query: SalesQuery) -> List[ProductSales]:
        """Quantity and revenue per product, zero-value line items excluded"""

    @abstractmethod
    async def activity(self, db: AsyncSession, query: SalesQuery) -> List[ActivityCell]:
        """Sales and order count per (ISO day of week, local hour)"""


class InStoreAggregator(ChannelAggregator):
    """Point-of-sale transactions"""

    channel = Channel.IN_STORE

    async def revenue(self, db: AsyncSession, query: SalesQuery) -> float:
        stmt = select(
            func.coalesce(func.sum(Transaction.total_amount), 0).label("revenue")
        ).where(*in_store_conditions(query))

        result = await self._execute(db, stmt, "revenue")
        revenue = float(result.scalar_one() or 0)
        logger.debug("In-store revenue", revenue=revenue)
        return revenue

    async def order_count(self, db: AsyncSession, query: SalesQuery) -> int:
        stmt = (
            select(func.count().label("order_count"))
            .select_from(Transaction)
            .where(*in_store_conditions(query))
        )

        result = await self._execute(db, stmt, "order_count")
        orders = int(result.scalar_one() or 0)
        logger.debug("In-store orders", orders=orders)
        return orders

    async def daily_sales(self, db: AsyncSession, query: SalesQuery) -> List[DailySales]:
        stmt = (
            select(
                Transaction.transaction_date.label("day"),
                func.sum(Transaction.total_amount).label("sales"),
            )
            .where(*in_store_conditions(query))
            .group_by(Transaction.transaction_date)
            .order_by(Transaction.transaction_date)
        )

        result = await self._execute(db, stmt, "daily_sales")
        return [DailySales(day=row.day, sales=float(row.sales or 0)) for row in result.all()]

    async def product_sales(self, db: AsyncSession, query: SalesQuery) -> List[ProductSales]:
        stmt = (
            select(
                TransactionItem.product_id,
                Transaction.store_id,
                func.sum(TransactionItem.quantity).label("quantity"),
                func.sum(TransactionItem.unit_price * TransactionItem.quantity).label("revenue"),
            )
            .select_from(TransactionItem)
            .join(Transaction, TransactionItem.transaction_id == Transaction.id)
            .where(
                *in_store_conditions(query),
                TransactionItem.quantity > 0,
                TransactionItem.unit_price != 0,
            )
            .group_by(TransactionItem.product_id, Transaction.store_id)
            .order_by(TransactionItem.product_id, Transaction.store_id)
        )

        result = await self._execute(db, stmt, "product_sales")
        products = [
            ProductSales(
                identifier=str(row.product_id),
                channel=self.channel,
                quantity=int(row.quantity or 0),
                revenue=float(row.revenue or 0),
                store_id=row.store_id,
            )
            for row in result.all()
        ]
        logger.debug("In-store product rows", rows=len(products))
        return products

    async def activity(self, db: AsyncSession, query: SalesQuery) -> List[ActivityCell]:
        hour_of_day = cast(extract("hour", Transaction.transaction_time), Integer)

        stmt = (
            select(
                Transaction.day_of_week.label("day_of_week"),
                hour_of_day.label("hour_of_day"),
                func.coalesce(func.sum(Transaction.total_amount), 0).label("total_sales"),
                func.count().label("order_count"),
            )
            .where(
                *in_store_conditions(query),
                Transaction.day_of_week.is_not(None),
                Transaction.transaction_time.is_not(None),
            )
            .group_by(Transaction.day_of_week, hour_of_day)
        )

        result = await self._execute(db, stmt, "activity")
        return [
            ActivityCell(
                day_of_week=int(row.day_of_week),
                hour_of_day=int(row.hour_of_day),
                total_sales=float(row.total_sales or 0),
                order_count=int(row.order_count),
            )
            for row in result.all()
        ]


class OnlineAggregator(ChannelAggregator):
    """
    Online (Bite) orders.

    Args:
        utc_offset_seconds: Fixed offset of the restaurants' local time,
            applied before extracting calendar day, weekday and hour
    """

    channel = Channel.ONLINE

    def __init__(self, utc_offset_seconds: int = 0):
        self.utc_offset_seconds = utc_offset_seconds

    @property
    def _local_seconds(self):
        return BiteOrder.ready_at_time + _const(self.utc_offset_seconds)

    @property
    def _local_day_number(self):
        """Days since 1970-01-01 in local time"""
        return self._local_seconds // _const(SECONDS_PER_DAY)

    async def revenue(self, db: AsyncSession, query: SalesQuery) -> float:
        stmt = select(
            func.coalesce(func.sum(BiteOrder.total_price), 0).label("revenue")
        ).where(*online_conditions(query))

        result = await self._execute(db, stmt, "revenue")
        revenue = float(result.scalar_one() or 0)
        logger.debug("Online revenue", revenue=revenue)
        return revenue

    async def order_count(self, db: AsyncSession, query: SalesQuery) -> int:
        stmt = (
            select(func.count().label("order_count"))
            .select_from(BiteOrder)
            .where(*online_conditions(query))
        )

        result = await self._execute(db, stmt, "order_count")
        orders = int(result.scalar_one() or 0)
        logger.debug("Online orders", orders=orders)
        return orders

    async def daily_sales(self, db: AsyncSession, query: SalesQuery) -> List[DailySales]:
        local_day = self._local_day_number

        stmt = (
            select(
                local_day.label("local_day"),
                func.sum(BiteOrder.total_price).label("sales"),
            )
            .where(*online_conditions(query))
            .group_by(local_day)
            .order_by(local_day)
        )

        result = await self._execute(db, stmt, "daily_sales")
        return [
            DailySales(
                day=EPOCH_DATE + timedelta(days=int(row.local_day)),
                sales=float(row.sales or 0),
            )
            for row in result.all()
        ]

    async def product_sales(self, db: AsyncSession, query: SalesQuery) -> List[ProductSales]:
        stmt = (
            select(
                BiteOrderItem.name,
                func.sum(BiteOrderItem.quantity).label("quantity"),
                func.sum(BiteOrderItem.line_price).label("revenue"),
            )
            .select_from(BiteOrderItem)
            .join(BiteOrder, BiteOrderItem.order_id == BiteOrder.order_id)
            .where(
                *online_conditions(query),
                BiteOrderItem.quantity > 0,
                BiteOrderItem.name.is_not(None),
                BiteOrderItem.name != "",
            )
            .group_by(BiteOrderItem.name)
            .order_by(BiteOrderItem.name)
        )

        result = await self._execute(db, stmt, "product_sales")
        products = [
            ProductSales(
                identifier=row.name,
                channel=self.channel,
                quantity=int(row.quantity or 0),
                revenue=float(row.revenue or 0),
            )
            for row in result.all()
        ]
        logger.debug("Online product rows", rows=len(products))
        return products

    async def activity(self, db: AsyncSession, query: SalesQuery) -> List[ActivityCell]:
        # 1970-01-01 was a Thursday (ISO weekday 4)
        day_of_week = (self._local_day_number + _const(3)) % _const(7) + _const(1)
        hour_of_day = (self._local_seconds % _const(SECONDS_PER_DAY)) // _const(SECONDS_PER_HOUR)

        stmt = (
            select(
                day_of_week.label("day_of_week"),
                hour_of_day.label("hour_of_day"),
                func.coalesce(func.sum(BiteOrder.total_price), 0).label("total_sales"),
                func.count().label("order_count"),
            )
            .where(*online_conditions(query))
            .group_by(day_of_week, hour_of_day)
        )

        result = await self._execute(db, stmt, "activity")
        return [
            ActivityCell(
                day_of_week=int(row.day_of_week),
                hour_of_day=int(row.hour_of_day),
                total_sales=float(row.total_sales or 0),
                order_count=int(row.order_count),
            )
            for row in result.all()
        ]
