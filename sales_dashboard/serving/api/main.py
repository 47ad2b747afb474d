"""
FastAPI Application Factory

Creates and configures the dashboard API application.
"""

from typing import Any, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from sales_dashboard.config import get_settings
from sales_dashboard.serving.api.errors import register_exception_handlers
from sales_dashboard.serving.api.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from sales_dashboard.serving.api.routes import dashboard_router, health_router


def create_api_app(lifespan: Optional[Callable[[FastAPI], Any]] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        lifespan: Startup/shutdown context manager

    Returns:
        Configured FastAPI app instance; the caller attaches
        `app.state.analytics_service`
    """
    settings = get_settings()

    app = FastAPI(
        title="Restaurant Sales Dashboard API",
        description="Revenue, orders, trend, top-product and activity data for the sales dashboard",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # CORS: only the dashboard frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router, prefix="/api", tags=["Health"])
    app.include_router(dashboard_router, prefix="/api", tags=["Dashboard"])

    return app
