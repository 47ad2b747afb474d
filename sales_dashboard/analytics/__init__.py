"""
Sales Analytics Module
"""
from .catalog import CatalogStore, ProductCatalog, load_catalog
from .exceptions import AggregationError, AnalyticsError, InvalidQueryError
from .filters import Channel, ChannelFilter, DateRange, SalesQuery, build_sales_query
from .service import SalesAnalyticsService

__all__ = [
    "CatalogStore",
    "ProductCatalog",
    "load_catalog",
    "AggregationError",
    "AnalyticsError",
    "InvalidQueryError",
    "Channel",
    "ChannelFilter",
    "DateRange",
    "SalesQuery",
    "build_sales_query",
    "SalesAnalyticsService",
]
