"""Database configuration and session management.

Provides the async SQLAlchemy engine, the session factory and the
request-scoped session dependency. PostgreSQL (asyncpg) is the production
backend; SQLite (aiosqlite) is accepted for local runs and tests, with
foreign keys switched on so delete conflicts behave the same way.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from app.infrastructure.config import settings


def is_sqlite(url: str) -> bool:
    """Check whether a database URL points at SQLite."""
    return make_url(url).get_backend_name() == "sqlite"


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(url: str) -> AsyncEngine:
    """Create the async engine for a database URL.

    Args:
        url: SQLAlchemy database URL.

    Returns:
        AsyncEngine. SQLite engines use no connection pool and enforce
        foreign keys on every connection.
    """
    if is_sqlite(url):
        sqlite_engine = create_async_engine(url, echo=settings.debug, poolclass=NullPool)
        event.listen(sqlite_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine

    return create_async_engine(
        url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


engine = create_engine(settings.database_url)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Open a session that commits on success and rolls back on error.

    Used directly by scripts; requests go through :func:`get_session`.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Yields:
        AsyncSession for database operations.
    """
    async with session_scope() as session:
        yield session
