"""
Database layer — async PostgreSQL via SQLAlchemy 2.0 + asyncpg.

Provides:
    • Async engine with a bounded connection pool
    • One synchronous-at-startup liveness probe (fail fast, no retry)
    • Base model for ORM entities

Usage:
    from backend.app.core.database import connect, close_db

    engine = await connect(settings.DATABASE_URL, min_conns=4, max_conns=4)
    ...
    await close_db(engine)
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from backend.app.core.errors import DatabaseConnectError

logger = logging.getLogger(__name__)


# ── ORM Base ──
class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


def async_database_url(url: str) -> str:
    """Point plain postgres:// URLs at the asyncpg driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


# ── Lifecycle ──
async def connect(
    url: str,
    *,
    min_conns: int = 1,
    max_conns: int = 5,
    max_conn_idle_time: Optional[float] = None,
    echo: bool = False,
) -> AsyncEngine:
    """
    Create the pooled engine and verify it with one probe.

    `min_conns` connections are kept in the pool, up to `max_conns` are
    opened under load. Connections idle longer than `max_conn_idle_time`
    seconds are recycled on next checkout.
    """
    try:
        engine = create_async_engine(
            make_url(async_database_url(url)),
            pool_size=min_conns,
            max_overflow=max(0, max_conns - min_conns),
            pool_recycle=int(max_conn_idle_time) if max_conn_idle_time else -1,
            pool_pre_ping=True,
            echo=echo,
        )
    except (SQLAlchemyError, ValueError) as exc:
        raise DatabaseConnectError(f"invalid database url: {exc}") from exc

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError, TimeoutError) as exc:
        await engine.dispose()
        raise DatabaseConnectError(f"database ping failed: {exc}") from exc

    logger.info(
        "Database pool ready",
        extra={"min_conns": min_conns, "max_conns": max_conns},
    )
    return engine


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables (dev/test only — use migrations in production)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")


async def close_db(engine: AsyncEngine) -> None:
    """Dispose engine connections."""
    await engine.dispose()
    logger.info("Database connections closed")
