"""
Sales Analytics Service

Runs the dashboard queries end to end:
SalesQuery -> channel aggregators (fan-out) -> reconciler -> enrichment.

Only channels selected by the query's source filter are queried. Each
selected channel runs in its own database session; both are issued
concurrently and awaited together. If either fails the whole request fails.
"""

import asyncio
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from sales_dashboard.analytics.aggregators import (
    ChannelAggregator,
    InStoreAggregator,
    OnlineAggregator,
)
from sales_dashboard.analytics.catalog import CatalogStore, enrich_products
from sales_dashboard.analytics.facts import (
    ActivityCell,
    OrderCountFact,
    RevenueFact,
    TopProduct,
    TrendPoint,
)
from sales_dashboard.analytics.filters import Channel, SalesQuery
from sales_dashboard.analytics.reconciler import (
    reconcile_activity,
    reconcile_orders,
    reconcile_products,
    reconcile_revenue,
    reconcile_trend,
)
from sales_dashboard.database.connection import get_db

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SalesAnalyticsService:
    """
    Dashboard query engine.

    Args:
        catalog_store: Product catalog used to enrich in-store products
        store_names: In-store store id -> logical store name
        utc_offset_seconds: Restaurants' fixed local UTC offset
        session_factory: Async context manager yielding a session
        aggregators: Per-channel aggregators (defaults to the SQL ones)
    """

    def __init__(
        self,
        catalog_store: CatalogStore,
        store_names: Optional[Mapping[str, str]] = None,
        utc_offset_seconds: int = 0,
        session_factory: SessionFactory = get_db,
        aggregators: Optional[Mapping[Channel, ChannelAggregator]] = None,
    ):
        self.catalog_store = catalog_store
        self.store_names = dict(store_names or {})
        self.session_factory = session_factory
        self.aggregators: Dict[Channel, ChannelAggregator] = dict(
            aggregators
            or {
                Channel.IN_STORE: InStoreAggregator(),
                Channel.ONLINE: OnlineAggregator(utc_offset_seconds=utc_offset_seconds),
            }
        )

    async def _run_channel(self, channel: Channel, operation: str, query: SalesQuery) -> Any:
        aggregator = self.aggregators[channel]
        async with self.session_factory() as db:
            return await getattr(aggregator, operation)(db, query)

    async def _fan_out(self, operation: str, query: SalesQuery) -> Dict[Channel, Any]:
        """
        Run one aggregation on every channel the query selects.

        Returns:
            Channel -> result, containing only the channels that ran
        """
        channels = query.channels.channels
        logger.debug(
            "Running channel aggregations",
            operation=operation,
            channels=[channel.value for channel in channels],
        )
        results = await asyncio.gather(
            *(self._run_channel(channel, operation, query) for channel in channels)
        )
        return dict(zip(channels, results))

    async def total_revenue(self, query: SalesQuery) -> RevenueFact:
        results = await self._fan_out("revenue", query)
        fact = reconcile_revenue(results.get(Channel.IN_STORE), results.get(Channel.ONLINE))
        logger.info(
            "Total revenue computed",
            store=query.store.name,
            source=query.channels.value,
            date_range=str(query.date_range) if query.date_range else None,
            total=fact.total,
            in_store=fact.in_store,
            online=fact.online,
        )
        return fact

    async def total_orders(self, query: SalesQuery) -> OrderCountFact:
        results = await self._fan_out("order_count", query)
        fact = reconcile_orders(results.get(Channel.IN_STORE), results.get(Channel.ONLINE))
        logger.info(
            "Total orders computed",
            store=query.store.name,
            source=query.channels.value,
            date_range=str(query.date_range) if query.date_range else None,
            total=fact.total,
            in_store=fact.in_store,
            online=fact.online,
        )
        return fact

    async def sales_trend(self, query: SalesQuery) -> List[TrendPoint]:
        if query.date_range is None:
            raise ValueError("sales_trend requires a date range")

        results = await self._fan_out("daily_sales", query)
        trend = reconcile_trend(query.date_range, results)
        logger.info("Sales trend computed", date_range=str(query.date_range), days=len(trend))
        return trend

    async def top_products(self, query: SalesQuery, limit: int) -> List[TopProduct]:
        results = await self._fan_out("product_sales", query)
        ranked = reconcile_products(results, limit)
        products = enrich_products(ranked, self.catalog_store.snapshot, self.store_names)
        logger.info("Top products computed", date_range=str(query.date_range), limit=limit, returned=len(products))
        return products

    async def sales_activity(self, query: SalesQuery) -> List[ActivityCell]:
        results = await self._fan_out("activity", query)
        cells = reconcile_activity(results)
        logger.info("Sales activity computed", date_range=str(query.date_range), cells=len(cells))
        return cells
