"""
Date-Range Query Normalizer

Validates dashboard filters once per request and canonicalizes them into a
SalesQuery that every channel aggregator understands:
- strict YYYY-MM-DD date parsing with pair rules
- channel (source) selection
- logical store -> per-channel physical identifiers
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import List, Mapping, Optional, Tuple

from sales_dashboard.analytics.exceptions import InvalidQueryError
from sales_dashboard.config.settings import StoreIdentifiers

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

ALL_STORES = "All"


class Channel(str, Enum):
    """Origin of an order"""
    IN_STORE = "In-Store"
    ONLINE = "Online"


class ChannelFilter(str, Enum):
    """Dashboard `source` selection"""
    ALL = "All"
    IN_STORE = "In Store"
    ONLINE = "Bite"

    @classmethod
    def from_param(cls, value: Optional[str]) -> "ChannelFilter":
        """Parse the `source` query parameter; absent means All."""
        if not value:
            return cls.ALL
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(f"'{member.value}'" for member in cls)
            raise InvalidQueryError(f"Invalid source '{value}'. Use one of: {allowed}.") from None

    def includes(self, channel: Channel) -> bool:
        if self is ChannelFilter.ALL:
            return True
        if self is ChannelFilter.IN_STORE:
            return channel is Channel.IN_STORE
        return channel is Channel.ONLINE

    @property
    def channels(self) -> List[Channel]:
        """Channels whose aggregators must run, in scan order"""
        return [channel for channel in Channel if self.includes(channel)]


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive calendar date range.

    end < start is allowed: it matches no rows in either channel and produces
    empty (zero) results rather than an error.
    """
    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.end < self.start

    def days(self) -> List[date]:
        """Every calendar day in the range, ascending"""
        return [self.start + timedelta(days=offset) for offset in range((self.end - self.start).days + 1)]

    def online_bounds(self) -> Tuple[int, int]:
        """
        Closed epoch-second range [start 00:00:00, end 23:59:59].

        Bounds are read as UTC wall-clock times, the same value Postgres gives
        for EXTRACT(EPOCH FROM '<date> 00:00:00'::timestamp).
        """
        lower = datetime.combine(self.start, time(0, 0, 0), tzinfo=timezone.utc)
        upper = datetime.combine(self.end, time(23, 59, 59), tzinfo=timezone.utc)
        return int(lower.timestamp()), int(upper.timestamp())

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


@dataclass(frozen=True)
class StoreSelection:
    """A logical store resolved to each channel's own identifier"""
    name: Optional[str] = None
    in_store_id: Optional[str] = None
    online_site_id: Optional[str] = None


@dataclass(frozen=True)
class SalesQuery:
    """Normalized dashboard request shared by all channel aggregators"""
    date_range: Optional[DateRange] = None
    channels: ChannelFilter = ChannelFilter.ALL
    store: StoreSelection = field(default_factory=StoreSelection)

    def includes(self, channel: Channel) -> bool:
        return self.channels.includes(channel)


def parse_date(value: str, param: str = "date") -> date:
    """
    Parse a strict YYYY-MM-DD string.

    Args:
        value: Raw query parameter
        param: Parameter name used in the error message

    Raises:
        InvalidQueryError: If the value does not match the pattern or is not
            a real calendar date
    """
    if not DATE_PATTERN.match(value):
        raise InvalidQueryError(f"Invalid date format for {param}: '{value}'. Use YYYY-MM-DD.")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidQueryError(f"Invalid date format for {param}: '{value}' is not a calendar date.") from None


def parse_date_range(
    start_date: Optional[str],
    end_date: Optional[str],
    required: bool = True,
) -> Optional[DateRange]:
    """
    Validate a startDate/endDate pair.

    Args:
        start_date: Raw startDate parameter
        end_date: Raw endDate parameter
        required: Whether the endpoint needs both dates unconditionally

    Returns:
        DateRange, or None when neither date is supplied and dates are optional

    Raises:
        InvalidQueryError: Missing pair member, missing required dates, or a
            malformed date
    """
    if not start_date and not end_date:
        if required:
            raise InvalidQueryError("Invalid date format. Use YYYY-MM-DD for both startDate and endDate.")
        return None

    if not start_date or not end_date:
        raise InvalidQueryError("Invalid date format or missing pair. Use YYYY-MM-DD for both startDate and endDate.")

    return DateRange(
        start=parse_date(start_date, "startDate"),
        end=parse_date(end_date, "endDate"),
    )


def resolve_store(name: Optional[str], mapping: Mapping[str, StoreIdentifiers]) -> StoreSelection:
    """
    Map a logical store name to the identifiers each channel's schema uses.

    "All", an absent name, or a name missing from the mapping means no store
    filter. A store mapped for only one channel stays unfiltered on the other.
    """
    if not name or name == ALL_STORES:
        return StoreSelection(name=name)

    identifiers = mapping.get(name)
    if identifiers is None:
        return StoreSelection(name=name)

    return StoreSelection(
        name=name,
        in_store_id=identifiers.in_store_id,
        online_site_id=identifiers.online_site_id,
    )


def build_sales_query(
    store: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    source: Optional[str],
    store_mapping: Mapping[str, StoreIdentifiers],
    dates_required: bool = True,
) -> SalesQuery:
    """Normalize raw dashboard filters into a SalesQuery."""
    return SalesQuery(
        date_range=parse_date_range(start_date, end_date, required=dates_required),
        channels=ChannelFilter.from_param(source),
        store=resolve_store(store, store_mapping),
    )
