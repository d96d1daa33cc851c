"""
Database configuration and session management.
Uses SQLAlchemy 2.x async engines; asyncpg (with pgvector) for PostgreSQL,
aiosqlite in tests.
"""

from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from spendwise.config import Settings
from spendwise.logging_config import get_logger

logger = get_logger(__name__)

# SQLAlchemy Base for ORM models
Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware current UTC time for timestamp defaults."""
    return datetime.now(timezone.utc)


def create_engine_for(config: Settings) -> AsyncEngine:
    """
    Create the async engine for ``config.async_database_url``.

    Pool sizing only applies to server databases; SQLite files use the
    driver's default pool.
    """
    url = config.async_database_url
    kwargs: dict = {
        "pool_pre_ping": True,
        "echo": config.environment == "development" and config.log_level == "DEBUG",
    }
    if url.startswith("postgresql"):
        kwargs.update(pool_size=10, max_overflow=20)

    logger.debug("creating_async_engine", driver=url.split(":", 1)[0])
    return create_async_engine(url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Get an async session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Initialize database tables.
    Only used for development/testing; production schemas are managed outside
    this package.
    """
    # Register every model on Base.metadata
    import spendwise.models  # noqa: F401

    logger.info("initializing_database_tables")
    async with engine.begin() as conn:
        if engine.dialect.name == "postgresql":
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_created")
