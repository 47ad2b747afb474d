"""
Database Connection Management

One pooled async engine per process, shared by both order sources.
Sessions handed out here are read-only: the dashboard never writes to the
POS or Bite tables, so every session is rolled back when released.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from sales_dashboard.config import get_settings
from sales_dashboard.config.settings import DatabaseSettings

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(db_settings: DatabaseSettings) -> Dict[str, Any]:
    """Pool sizing and driver options for create_async_engine."""
    options: Dict[str, Any] = {
        "echo": db_settings.echo,
        "pool_pre_ping": True,
        # a dashboard request holds up to one connection per channel
        "pool_size": db_settings.pool_size,
        "max_overflow": db_settings.max_overflow,
        "pool_timeout": db_settings.pool_timeout,
    }
    if db_settings.ssl:
        options["connect_args"] = {"ssl": "require"}
    return options


async def init_database() -> AsyncEngine:
    """
    Create the engine and session factory, then verify connectivity.

    Raises:
        Exception: Whatever the driver raises when the first connection fails
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    db_settings = get_settings().database
    _engine = create_async_engine(db_settings.async_url, **_engine_options(db_settings))
    _session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Failed to connect to database", host=db_settings.host, error=str(e))
        raise

    logger.info(
        "Database pool ready",
        host=db_settings.host,
        database=db_settings.name,
        pool_size=db_settings.pool_size,
        ssl=db_settings.ssl,
    )
    return _engine


async def close_database() -> None:
    """Dispose of the pool; safe to call when it was never created."""
    global _engine, _session_factory

    if _engine is None:
        return

    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database pool closed")


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Borrow a session for one channel query.

    Example:
        async with get_db() as db:
            result = await db.execute(stmt)
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    session = _session_factory()
    try:
        yield session
    finally:
        await session.rollback()
        await session.close()


async def check_database_health() -> Dict[str, Any]:
    """Round-trip a trivial query and report its latency."""
    started = time.perf_counter()
    try:
        async with get_db() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
    }
