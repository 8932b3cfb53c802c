"""Database engine and session handling."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from openclaw.config import Settings
from openclaw.errors import StorageTimeout, StorageUnavailable

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # sqlite ignores ON DELETE CASCADE and FK checks unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def normalize_database_url(raw_url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver; leave others alone."""
    for scheme in ("postgres://", "postgresql://"):
        if raw_url.startswith(scheme):
            return "postgresql+asyncpg://" + raw_url[len(scheme):]
    return raw_url


def build_engine(
    database_url: str,
    *,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    timeout: float = 10.0,
) -> AsyncEngine:
    """Create the async engine (and its connection pool) for this process."""
    url = make_url(normalize_database_url(database_url))

    if url.get_backend_name() == "sqlite":
        kwargs: dict = {"echo": echo, "connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every checkout sees an empty db
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(url, **kwargs)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=timeout,
        pool_pre_ping=True,
        connect_args={"timeout": timeout, "command_timeout": timeout},
    )


def engine_from_settings(settings: Settings) -> AsyncEngine:
    return build_engine(
        settings.database_url,
        echo=settings.log_level.upper() == "DEBUG",
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        timeout=settings.db_timeout_seconds,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def translate_db_errors() -> AsyncIterator[None]:
    """Re-raise driver and pool failures as StorageUnavailable / StorageTimeout."""
    try:
        yield
    except (sa_exc.TimeoutError, asyncio.TimeoutError, TimeoutError) as e:
        logger.warning("Database call timed out: %r", e)
        raise StorageTimeout(str(e)) from e
    except (sa_exc.DBAPIError, OSError) as e:
        logger.error("Database unavailable: %r", e)
        raise StorageUnavailable(str(e)) from e


@asynccontextmanager
async def session_scope(
    sessions: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    One unit of work: commit on success, roll back on any error.

    Errors already in the service taxonomy pass through untouched.
    """
    async with translate_db_errors():
        async with sessions() as session:
            async with session.begin():
                yield session
