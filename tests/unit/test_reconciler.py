"""
Unit Tests - Channel Reconciliation
"""
from datetime import date

from sales_dashboard.analytics.facts import ActivityCell, DailySales, ProductSales
from sales_dashboard.analytics.filters import Channel, DateRange
from sales_dashboard.analytics.reconciler import (
    reconcile_activity,
    reconcile_orders,
    reconcile_products,
    reconcile_revenue,
    reconcile_trend,
)


class TestScalarFacts:
    """Tests for revenue and order totals"""

    def test_total_is_sum_of_parts(self):
        fact = reconcile_revenue(120.5, 79.5)

        assert fact.total == 200.0
        assert fact.in_store == 120.5
        assert fact.online == 79.5

    def test_channel_not_run_counts_as_zero(self):
        fact = reconcile_orders(None, 7)

        assert fact.in_store == 0
        assert fact.total == 7


class TestReconcileTrend:
    """Tests for the daily sales series"""

    def test_fills_every_day_and_merges_channels(self):
        date_range = DateRange(date(2024, 3, 4), date(2024, 3, 8))
        partials = {
            Channel.IN_STORE: [DailySales(date(2024, 3, 4), 30.0), DailySales(date(2024, 3, 6), 37.0)],
            Channel.ONLINE: [DailySales(date(2024, 3, 6), 40.0)],
        }

        trend = reconcile_trend(date_range, partials)

        assert [point.day for point in trend] == date_range.days()
        assert [point.sales for point in trend] == [30.0, 0.0, 77.0, 0.0, 0.0]

    def test_drops_days_outside_range(self):
        date_range = DateRange(date(2024, 3, 4), date(2024, 3, 5))
        partials = {Channel.ONLINE: [DailySales(date(2024, 3, 9), 5.0)]}

        trend = reconcile_trend(date_range, partials)

        assert [point.sales for point in trend] == [0.0, 0.0]

    def test_reversed_range_is_empty(self):
        date_range = DateRange(date(2024, 3, 8), date(2024, 3, 4))

        assert reconcile_trend(date_range, {}) == []

    def test_no_partials(self):
        trend = reconcile_trend(DateRange(date(2024, 3, 4), date(2024, 3, 4)), {})

        assert len(trend) == 1
        assert trend[0].sales == 0.0


class TestReconcileProducts:
    """Tests for cross-channel product ranking"""

    def test_ranks_after_union(self):
        partials = {
            Channel.IN_STORE: [
                ProductSales("101", Channel.IN_STORE, 2, 20.0, "wagga"),
                ProductSales("102", Channel.IN_STORE, 1, 10.0, "wagga"),
            ],
            Channel.ONLINE: [ProductSales("Burger", Channel.ONLINE, 3, 45.0)],
        }

        top = reconcile_products(partials, limit=2)

        assert [p.identifier for p in top] == ["Burger", "101"]
        assert top[0].channel is Channel.ONLINE
        assert top[1].store_id == "wagga"

    def test_ties_keep_in_store_first(self):
        partials = {
            Channel.ONLINE: [ProductSales("Chips", Channel.ONLINE, 1, 10.0)],
            Channel.IN_STORE: [ProductSales("102", Channel.IN_STORE, 1, 10.0, "wagga")],
        }

        top = reconcile_products(partials, limit=10)

        assert [p.identifier for p in top] == ["102", "Chips"]

    def test_fewer_products_than_limit(self):
        partials = {Channel.ONLINE: [ProductSales("Soda", Channel.ONLINE, 2, 10.0)]}

        assert len(reconcile_products(partials, limit=40)) == 1

    def test_no_products(self):
        assert reconcile_products({}, limit=40) == []


class TestReconcileActivity:
    """Tests for weekday/hour merging"""

    def test_shared_cell_merges(self):
        partials = {
            Channel.IN_STORE: [ActivityCell(3, 12, 25.0, 1), ActivityCell(1, 12, 30.0, 1)],
            Channel.ONLINE: [ActivityCell(3, 12, 40.0, 1), ActivityCell(2, 9, 20.0, 1)],
        }

        cells = reconcile_activity(partials)

        assert cells == [
            ActivityCell(1, 12, 30.0, 1),
            ActivityCell(2, 9, 20.0, 1),
            ActivityCell(3, 12, 65.0, 2),
        ]

    def test_no_activity(self):
        assert reconcile_activity({}) == []
