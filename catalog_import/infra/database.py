"""Async database configuration.

Provides:
- Async SQLAlchemy engine and session factory
- Per-record transaction scope used by the importer
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from catalog_import.config import settings
from catalog_import.infra.logging import get_logger

logger = get_logger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]

_engine: AsyncEngine | None = None
_session_factory: SessionFactory | None = None


def get_engine() -> AsyncEngine:
    """Get or create the async database engine."""
    global _engine

    if _engine is None:
        url = settings.database_url
        engine_kwargs: dict[str, Any] = {"echo": settings.debug}

        # SQLite (local runs, tests) does not take queue pool sizing
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_pool_max_overflow,
                pool_pre_ping=True,
                pool_recycle=1800,
            )

        logger.info("Creating database engine", dialect=url.split(":", 1)[0])
        _engine = create_async_engine(url, **engine_kwargs)

    return _engine


def get_session_factory() -> SessionFactory:
    """Get or create the session factory."""
    global _session_factory

    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())

    return _session_factory


def create_session_factory(engine: AsyncEngine) -> SessionFactory:
    """Build a session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def transaction(
    session_factory: SessionFactory | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session whose work is committed as one transaction.

    Commits when the block exits normally, rolls back and re-raises otherwise.

    Example:
        async with transaction() as session:
            session.add(product)
    """
    factory = session_factory or get_session_factory()
    session = factory()

    try:
        yield session
        await session.commit()

    except Exception as e:
        await session.rollback()
        logger.debug("Transaction rolled back", error=str(e))
        raise

    finally:
        await session.close()


async def create_schema(engine: AsyncEngine | None = None) -> None:
    """Create all catalog tables that do not exist yet."""
    from catalog_import.models import Base

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db_engine() -> None:
    """Close the database engine and all connections."""
    global _engine, _session_factory

    if _engine is not None:
        logger.info("Closing database engine")
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def verify_db_connection(session_factory: SessionFactory | None = None) -> bool:
    """Verify database connectivity.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        async with transaction(session_factory) as session:
            await session.execute(text("SELECT 1"))
        logger.info("Database connection verified")
        return True
    except Exception as e:
        logger.error("Database connection failed", error=str(e))
        return False
