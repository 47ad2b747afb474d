"""
Unit Tests - Query Normalization
"""
from datetime import date

import pytest

from sales_dashboard.analytics.exceptions import InvalidQueryError
from sales_dashboard.analytics.filters import (
    Channel,
    ChannelFilter,
    DateRange,
    build_sales_query,
    parse_date,
    parse_date_range,
    resolve_store,
)
from sales_dashboard.analytics.predicates import in_store_conditions, online_conditions
from sales_dashboard.config.settings import ReportingSettings, StoreIdentifiers

STORES = ReportingSettings().stores


class TestParseDate:
    """Tests for strict date parsing"""

    def test_valid_date(self):
        assert parse_date("2024-03-04") == date(2024, 3, 4)

    @pytest.mark.parametrize("value", ["2024-3-4", "04/03/2024", "2024-03-04T00:00:00", "", "yesterday"])
    def test_rejects_other_formats(self, value):
        with pytest.raises(InvalidQueryError, match="YYYY-MM-DD"):
            parse_date(value)

    def test_rejects_impossible_calendar_date(self):
        with pytest.raises(InvalidQueryError, match="not a calendar date"):
            parse_date("2024-02-30", "startDate")


class TestParseDateRange:
    """Tests for startDate/endDate pair rules"""

    def test_both_dates(self):
        result = parse_date_range("2024-03-04", "2024-03-08")

        assert result == DateRange(date(2024, 3, 4), date(2024, 3, 8))

    def test_required_dates_missing(self):
        with pytest.raises(InvalidQueryError):
            parse_date_range(None, None, required=True)

    def test_optional_dates_missing(self):
        assert parse_date_range(None, None, required=False) is None

    @pytest.mark.parametrize("start,end", [("2024-03-04", None), (None, "2024-03-08")])
    def test_half_pair_rejected_even_when_optional(self, start, end):
        with pytest.raises(InvalidQueryError, match="missing pair"):
            parse_date_range(start, end, required=False)

    def test_reversed_range_is_accepted(self):
        result = parse_date_range("2024-03-08", "2024-03-04")

        assert result.is_empty
        assert result.days() == []


class TestDateRange:
    """Tests for DateRange helpers"""

    def test_days_inclusive(self):
        days = DateRange(date(2024, 2, 28), date(2024, 3, 1)).days()

        assert days == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]

    def test_online_bounds_cover_whole_days(self):
        lower, upper = DateRange(date(2024, 3, 4), date(2024, 3, 8)).online_bounds()

        assert lower == 1709510400
        assert upper == 1709510400 + 5 * 86400 - 1


class TestChannelFilter:
    """Tests for source parsing"""

    @pytest.mark.parametrize("value", [None, "", "All"])
    def test_defaults_to_all(self, value):
        assert ChannelFilter.from_param(value) is ChannelFilter.ALL

    def test_in_store(self):
        source = ChannelFilter.from_param("In Store")

        assert source.channels == [Channel.IN_STORE]

    def test_bite(self):
        source = ChannelFilter.from_param("Bite")

        assert source.channels == [Channel.ONLINE]

    def test_all_runs_in_store_first(self):
        assert ChannelFilter.ALL.channels == [Channel.IN_STORE, Channel.ONLINE]

    def test_unknown_source_rejected(self):
        with pytest.raises(InvalidQueryError, match="Invalid source"):
            ChannelFilter.from_param("Uber")


class TestResolveStore:
    """Tests for logical store mapping"""

    def test_mapped_store(self):
        store = resolve_store("Wagga", STORES)

        assert store.in_store_id == "wagga"
        assert store.online_site_id == "641"

    @pytest.mark.parametrize("name", [None, "All", "Sydney"])
    def test_unfiltered(self, name):
        store = resolve_store(name, STORES)

        assert store.in_store_id is None
        assert store.online_site_id is None

    def test_partially_mapped_store(self):
        mapping = {"Popup": StoreIdentifiers(in_store_id="popup")}

        store = resolve_store("Popup", mapping)

        assert store.in_store_id == "popup"
        assert store.online_site_id is None


class TestPredicates:
    """Tests for channel predicate composition"""

    def test_no_filters(self):
        query = build_sales_query(None, None, None, None, STORES, dates_required=False)

        assert in_store_conditions(query) == []
        assert online_conditions(query) == []

    def test_store_and_dates(self):
        query = build_sales_query("Preston", "2024-03-04", "2024-03-08", None, STORES)

        in_store = [str(c) for c in in_store_conditions(query)]
        online = [str(c) for c in online_conditions(query)]

        assert len(in_store) == 3
        assert any("transactions.store_id" in c for c in in_store)
        assert len(online) == 2
        assert any("BETWEEN" in c for c in online)
        assert any("bite_orders.site_id" in c for c in online)
