"""
Channel Reconciler

Merges independently computed in-store and online results into combined
facts while keeping the per-channel breakdown.

A channel excluded by the source filter never reaches this module: scalar
inputs arrive as None and grouped inputs are simply absent from the
partials mapping. Combined values are always derived from the parts:
- scalar facts: total = in_store + online
- trend: union per-day partials, then left-join onto the full calendar
- top products: union first, then sort by revenue and truncate
- activity: union, then group again so shared (day, hour) cells merge
"""

from typing import List, Mapping, Optional, Sequence

import polars as pl
import structlog

from sales_dashboard.analytics.facts import (
    ActivityCell,
    DailySales,
    OrderCountFact,
    ProductSales,
    RevenueFact,
    TrendPoint,
)
from sales_dashboard.analytics.filters import Channel, DateRange

logger = structlog.get_logger(__name__)

DAILY_SCHEMA = {"day": pl.Date, "sales": pl.Float64}

PRODUCT_SCHEMA = {
    "identifier": pl.Utf8,
    "channel": pl.Utf8,
    "store_id": pl.Utf8,
    "quantity": pl.Int64,
    "revenue": pl.Float64,
}

ACTIVITY_SCHEMA = {
    "day_of_week": pl.Int64,
    "hour_of_day": pl.Int64,
    "total_sales": pl.Float64,
    "order_count": pl.Int64,
}


def _in_scan_order(partials: Mapping[Channel, Sequence]) -> List:
    """Concatenate channel partials, in-store first."""
    rows = []
    for channel in Channel:
        rows.extend(partials.get(channel, ()))
    return rows


def reconcile_revenue(in_store: Optional[float], online: Optional[float]) -> RevenueFact:
    """Combine channel revenue; a channel that did not run counts as zero."""
    return RevenueFact(
        in_store=in_store if in_store is not None else 0.0,
        online=online if online is not None else 0.0,
    )


def reconcile_orders(in_store: Optional[int], online: Optional[int]) -> OrderCountFact:
    """Combine channel order counts; a channel that did not run counts as zero."""
    return OrderCountFact(
        in_store=in_store if in_store is not None else 0,
        online=online if online is not None else 0,
    )


def reconcile_trend(
    date_range: DateRange,
    partials: Mapping[Channel, Sequence[DailySales]],
) -> List[TrendPoint]:
    """
    Build the daily sales series for a date range.

    Args:
        date_range: Requested inclusive range
        partials: Per-day sales of each channel that ran

    Returns:
        One point per calendar day in the range, ascending, with zero sales
        on days without activity. Partials outside the range are dropped.
    """
    if date_range.is_empty:
        return []

    calendar = pl.DataFrame({"day": date_range.days()}, schema={"day": pl.Date})

    daily = pl.DataFrame(
        [(partial.day, partial.sales) for partial in _in_scan_order(partials)],
        schema=DAILY_SCHEMA,
        orient="row",
    )
    totals = daily.group_by("day").agg(pl.col("sales").sum())

    trend = (
        calendar.join(totals, on="day", how="left")
        .with_columns(pl.col("sales").fill_null(0.0))
        .sort("day")
    )

    logger.debug("Trend reconciled", days=trend.height, active_days=totals.height)
    return [TrendPoint(day=row["day"], sales=row["sales"]) for row in trend.iter_rows(named=True)]


def reconcile_products(
    partials: Mapping[Channel, Sequence[ProductSales]],
    limit: int,
) -> List[ProductSales]:
    """
    Rank product partials of both channels together.

    Sorting and truncation happen after the union so that a product that
    only sells online still ranks against in-store products. Equal revenue
    keeps scan order (in-store rows first).
    """
    products = pl.DataFrame(
        [
            (p.identifier, p.channel.value, p.store_id, p.quantity, p.revenue)
            for p in _in_scan_order(partials)
        ],
        schema=PRODUCT_SCHEMA,
        orient="row",
    )

    top = products.sort("revenue", descending=True, maintain_order=True).head(limit)

    logger.debug("Products reconciled", candidates=products.height, kept=top.height, limit=limit)
    return [
        ProductSales(
            identifier=row["identifier"],
            channel=Channel(row["channel"]),
            quantity=row["quantity"],
            revenue=row["revenue"],
            store_id=row["store_id"],
        )
        for row in top.iter_rows(named=True)
    ]


def reconcile_activity(partials: Mapping[Channel, Sequence[ActivityCell]]) -> List[ActivityCell]:
    """
    Merge (day of week, hour) cells of both channels.

    Returns one row per observed cell, ordered by day then hour.
    """
    cells = pl.DataFrame(
        [
            (c.day_of_week, c.hour_of_day, c.total_sales, c.order_count)
            for c in _in_scan_order(partials)
        ],
        schema=ACTIVITY_SCHEMA,
        orient="row",
    )

    merged = (
        cells.group_by(["day_of_week", "hour_of_day"])
        .agg(
            pl.col("total_sales").sum(),
            pl.col("order_count").sum(),
        )
        .sort(["day_of_week", "hour_of_day"])
    )

    return [ActivityCell(**row) for row in merged.iter_rows(named=True)]
