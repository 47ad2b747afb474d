"""
Dashboard API Endpoints

Revenue, order-count, trend, top-product and activity widgets. All dates
are YYYY-MM-DD; `source` is one of All, In Store, Bite.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
import structlog

from sales_dashboard.analytics.filters import SalesQuery, build_sales_query
from sales_dashboard.analytics.service import SalesAnalyticsService
from sales_dashboard.config import get_settings

settings = get_settings()
router = APIRouter()
logger = structlog.get_logger(__name__)


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class TotalRevenueResponse(BaseModel):
    """Revenue with per-channel breakdown"""
    model_config = ConfigDict(populate_by_name=True)

    total_revenue: float = Field(alias="totalRevenue")
    in_store_revenue: float = Field(alias="inStoreRevenue")
    online_revenue: float = Field(alias="onlineRevenue")


class TotalOrdersResponse(BaseModel):
    """Order count with per-channel breakdown"""
    model_config = ConfigDict(populate_by_name=True)

    total_orders: int = Field(alias="totalOrders")
    in_store_orders: int = Field(alias="inStoreOrders")
    online_orders: int = Field(alias="onlineOrders")


class SalesTrendPoint(BaseModel):
    """Sales on one calendar day"""
    date: str
    sales: float


class TopProductResponse(BaseModel):
    """One ranked product"""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    source: str
    store_name: Optional[str] = Field(default=None, alias="storeName")
    revenue: float
    sale_price: Optional[float] = Field(default=None, alias="salePrice")
    cost_price: Optional[float] = Field(default=None, alias="costPrice")
    quantity: int


class SalesActivityCell(BaseModel):
    """Sales in one weekday/hour cell"""
    day_of_week: int
    hour_of_day: int
    total_sales: float
    order_count: int


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_analytics_service(request: Request) -> SalesAnalyticsService:
    return request.app.state.analytics_service


def _sales_query(
    store: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    source: Optional[str],
    dates_required: bool,
) -> SalesQuery:
    logger.info(
        "Dashboard query received",
        store=store,
        source=source or "All",
        start_date=start_date,
        end_date=end_date,
    )
    return build_sales_query(
        store=store,
        start_date=start_date,
        end_date=end_date,
        source=source,
        store_mapping=settings.reporting.stores,
        dates_required=dates_required,
    )


def optional_dates_query(
    store: Optional[str] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    source: Optional[str] = None,
) -> SalesQuery:
    """Filters for totals: dates may be omitted, but only as a pair"""
    return _sales_query(store, start_date, end_date, source, dates_required=False)


def required_dates_query(
    store: Optional[str] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    source: Optional[str] = None,
) -> SalesQuery:
    """Filters for grouped widgets: both dates are mandatory"""
    return _sales_query(store, start_date, end_date, source, dates_required=True)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/total-revenue", response_model=TotalRevenueResponse)
async def get_total_revenue(
    query: SalesQuery = Depends(optional_dates_query),
    service: SalesAnalyticsService = Depends(get_analytics_service),
) -> TotalRevenueResponse:
    """
    Total revenue for the filters, split into in-store and online.

    totalRevenue is always inStoreRevenue + onlineRevenue; a channel
    excluded by `source` reports 0.
    """
    fact = await service.total_revenue(query)
    return TotalRevenueResponse(
        total_revenue=fact.total,
        in_store_revenue=fact.in_store,
        online_revenue=fact.online,
    )


@router.get("/total-orders", response_model=TotalOrdersResponse)
async def get_total_orders(
    query: SalesQuery = Depends(optional_dates_query),
    service: SalesAnalyticsService = Depends(get_analytics_service),
) -> TotalOrdersResponse:
    """Total order count for the filters, split into in-store and online."""
    fact = await service.total_orders(query)
    return TotalOrdersResponse(
        total_orders=fact.total,
        in_store_orders=fact.in_store,
        online_orders=fact.online,
    )


@router.get("/sales-trend", response_model=List[SalesTrendPoint])
async def get_sales_trend(
    query: SalesQuery = Depends(required_dates_query),
    service: SalesAnalyticsService = Depends(get_analytics_service),
) -> List[SalesTrendPoint]:
    """Daily sales, one row per calendar day of the range including zero days."""
    trend = await service.sales_trend(query)
    return [SalesTrendPoint(date=point.day.isoformat(), sales=point.sales) for point in trend]


@router.get("/top-products", response_model=List[TopProductResponse])
async def get_top_products(
    query: SalesQuery = Depends(required_dates_query),
    limit: int = Query(
        settings.reporting.default_top_products_limit,
        ge=1,
        le=settings.reporting.max_top_products_limit,
    ),
    service: SalesAnalyticsService = Depends(get_analytics_service),
) -> List[TopProductResponse]:
    """Best-selling products across both channels, by revenue descending."""
    products = await service.top_products(query, limit)
    return [
        TopProductResponse(
            name=product.name,
            source=product.channel.value,
            store_name=product.store_name,
            revenue=product.revenue,
            sale_price=product.sale_price,
            cost_price=product.cost_price,
            quantity=product.quantity,
        )
        for product in products
    ]


@router.get("/sales-activity", response_model=List[SalesActivityCell])
async def get_sales_activity(
    query: SalesQuery = Depends(required_dates_query),
    service: SalesAnalyticsService = Depends(get_analytics_service),
) -> List[SalesActivityCell]:
    """Sales and order counts per ISO weekday (Mon=1) and local hour."""
    cells = await service.sales_activity(query)
    return [
        SalesActivityCell(
            day_of_week=cell.day_of_week,
            hour_of_day=cell.hour_of_day,
            total_sales=cell.total_sales,
            order_count=cell.order_count,
        )
        for cell in cells
    ]
