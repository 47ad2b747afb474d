"""
FastAPI Production Application

Main entry point for the Restaurant Sales Dashboard API.
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from sales_dashboard.analytics.catalog import CatalogStore
from sales_dashboard.analytics.service import SalesAnalyticsService
from sales_dashboard.config import get_settings
from sales_dashboard.config.logging import configure_logging
from sales_dashboard.database.connection import init_database, close_database
from sales_dashboard.serving.api.main import create_api_app

settings = get_settings()
logger = structlog.get_logger(__name__)

catalog_store = CatalogStore(settings.catalog.sources())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    logger.info("Starting Restaurant Sales Dashboard API", frontend_url=settings.security.frontend_url)

    try:
        await init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.warning("Database init failed", error=str(e))

    # Catalog must be in memory before the first top-products request
    await asyncio.to_thread(catalog_store.reload)

    yield

    logger.info("Shutting down...")
    await close_database()


app = create_api_app(lifespan=lifespan)
app.state.analytics_service = SalesAnalyticsService(
    catalog_store=catalog_store,
    store_names=settings.reporting.store_names_by_in_store_id,
    utc_offset_seconds=settings.reporting.local_utc_offset_seconds,
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
