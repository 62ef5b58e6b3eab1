"""
LinkShelf Backend — Database Engine & Declarative Base
=======================================================

What:  Async SQLAlchemy engine factory, the declarative `Base`, and a
       schema bootstrap helper.
How:   `create_engine()` builds an async engine with connection pooling
       sized from settings; `SqlBackend` owns the engine and opens one
       session per backend operation.
Who:   Used by `build_backend()` (only when the SQL backend is selected), by
       Alembic (metadata) and by the test suite (SQLite via aiosqlite).
When:  Nothing connects at import time; the engine exists only once the
       application has decided to use real data.

Connection Pooling Strategy (PostgreSQL):
    pool_size / max_overflow:  From settings (defaults 10 + 5)
    pool_pre_ping:             Validates connections before use
    pool_recycle=3600:         Recycles connections every hour

    SQLite URLs (tests, local experiments) get the dialect's default pool;
    QueuePool sizing arguments do not apply to it.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from linkshelf.config import Settings, settings as default_settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so they register with one shared
    metadata object, which Alembic reads for migrations.
    """
    pass


def async_database_url(url: str) -> str:
    """
    Normalise a database URL to an async driver.

    Hosted Postgres providers hand out `postgres://` or `postgresql://`
    URLs; SQLAlchemy's async engine needs `postgresql+asyncpg://`.
    """
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def create_engine(
    database_url: Optional[str] = None,
    config: Optional[Settings] = None,
) -> AsyncEngine:
    """
    Create the async engine used by the SQL backend.

    Args:
        database_url: Overrides `config.database_url` (tests pass SQLite URLs)
        config:       Settings to size the pool from; defaults to the singleton
    """
    config = config or default_settings
    url = async_database_url(database_url or config.database_url)

    options = {
        # Echo SQL queries in DEBUG mode for development visibility
        "echo": config.log_level == "DEBUG",
    }
    if not url.startswith("sqlite"):
        options.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(url, **options)


async def create_all(engine: AsyncEngine) -> None:
    """
    Create every table registered on `Base.metadata`.

    Production schemas are managed by Alembic; this is for throwaway
    databases (tests, a first local run against an empty SQLite file).
    """
    # Importing the package registers every model with Base.metadata
    import linkshelf.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Close all pooled connections (application shutdown)."""
    await engine.dispose()
