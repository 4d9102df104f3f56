"""Async database engine and session management for direct SQL access.

Most scripts talk to Supabase over its REST API. Migrations and schema
verification need a direct Postgres connection instead, which this module
provides through an async SQLAlchemy 2.0 engine with the asyncpg driver.

The engine is created on first use so that importing the package never
requires database credentials.

Usage:
    from fantasy_ops.database import session_scope

    async with session_scope() as session:
        await session.execute(text("SELECT 1"))
"""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fantasy_ops.config import get_database_url

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _requires_ssl(database_url: str) -> bool:
    # Supabase rejects non-TLS connections; local Postgres usually has no TLS
    return "localhost" not in database_url and "127.0.0.1" not in database_url


def create_engine(database_url: str | None = None) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an async engine and its session factory.

    Args:
        database_url: Explicit URL (defaults to get_database_url()).

    Returns:
        Tuple of (engine, async_session_factory).

    Raises:
        ValueError: If no URL is given and none is configured.
    """
    url = database_url or get_database_url()
    connect_args = {"ssl": "require"} if _requires_ssl(url) else {}
    engine = create_async_engine(
        url,
        pool_size=2,
        max_overflow=0,
        pool_pre_ping=True,
        connect_args=connect_args,
        echo=os.getenv("DATABASE_ECHO", "").lower() == "true",
    )
    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine, factory


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the shared session factory, creating the engine on first call."""
    global _engine, _session_factory
    if _session_factory is None:
        _engine, _session_factory = create_engine()
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session that commits on success and rolls back on exception."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Close all pooled connections (call before the script exits)."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
