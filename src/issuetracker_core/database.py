"""Database engine and session management."""
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from .config import Settings, get_settings

# Base class for models
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, settings: Optional[Settings] = None, **kwargs) -> AsyncEngine:
    """
    Create an async engine with a bounded connection pool.

    SQLite URLs skip the pool sizing options, which the SQLite pools do not
    accept, and get foreign key enforcement switched on for every connection.

    Args:
        url: SQLAlchemy database URL
        settings: Settings providing the pool bounds (defaults to get_settings())
        **kwargs: Extra keyword arguments passed to create_async_engine

    Returns:
        AsyncEngine: Configured engine
    """
    settings = settings or get_settings()
    is_sqlite = url.startswith("sqlite")

    options = {"echo": settings.db_echo, **kwargs}
    if not is_sqlite:
        options.setdefault("pool_pre_ping", True)
        options.setdefault("pool_size", settings.db_pool_size)
        options.setdefault("max_overflow", settings.db_max_overflow)
        options.setdefault("pool_recycle", settings.db_pool_recycle)
        options.setdefault("pool_timeout", settings.db_pool_timeout)

    engine = create_async_engine(url, **options)
    if is_sqlite:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the engine."""
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    # Register the mapped classes on Base.metadata
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

