"""
Sales Facts

Per-channel partial results produced by the aggregators and the reconciled
facts returned to the API layer.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sales_dashboard.analytics.filters import Channel


@dataclass(frozen=True)
class RevenueFact:
    """Revenue per channel; total is always in_store + online"""
    in_store: float = 0.0
    online: float = 0.0

    @property
    def total(self) -> float:
        return self.in_store + self.online


@dataclass(frozen=True)
class OrderCountFact:
    """Order count per channel; total is always in_store + online"""
    in_store: int = 0
    online: int = 0

    @property
    def total(self) -> int:
        return self.in_store + self.online


@dataclass(frozen=True)
class DailySales:
    """One channel's sales on one local calendar day"""
    day: date
    sales: float


@dataclass(frozen=True)
class TrendPoint:
    """Combined sales for one calendar day of the requested range"""
    day: date
    sales: float


@dataclass(frozen=True)
class ProductSales:
    """
    One channel's partial aggregate for a product.

    identifier is a numeric product id (as text) for in-store rows and the
    product name for online rows. store_id is only known in-store.
    """
    identifier: str
    channel: Channel
    quantity: int
    revenue: float
    store_id: Optional[str] = None


@dataclass(frozen=True)
class TopProduct:
    """Enriched top-products row"""
    name: str
    channel: Channel
    quantity: int
    revenue: float
    sale_price: Optional[float] = None
    cost_price: Optional[float] = None
    store_name: Optional[str] = None


@dataclass(frozen=True)
class ActivityCell:
    """Sales in one (ISO day of week, local hour) cell"""
    day_of_week: int
    hour_of_day: int
    total_sales: float
    order_count: int
