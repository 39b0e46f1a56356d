# lead_intake/db/session.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from lead_intake.core.config import settings
from lead_intake.core.exceptions import ConfigurationError, StoreError
from lead_intake.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

# Global engine instance, created on first use
engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


def create_database_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create and configure the async database engine."""
    global engine, AsyncSessionLocal

    if engine is not None:
        return engine

    url = database_url or settings.database_url
    if not url:
        raise ConfigurationError("DATABASE_URL is not set", details={"missing": ["DATABASE_URL"]})

    if settings.is_testing or url.startswith("sqlite"):
        # No pooling for tests and file databases
        engine = create_async_engine(
            url,
            poolclass=NullPool,
            echo=settings.debug,
        )
    else:
        connect_args = {}
        if url.startswith("postgresql+asyncpg"):
            connect_args = {
                "command_timeout": 30,
                "server_settings": {"application_name": "lead_intake"},
            }
        engine = create_async_engine(
            url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_recycle=settings.database_pool_recycle,
            pool_pre_ping=True,  # Verify connections before using
            echo=settings.debug,
            connect_args=connect_args,
        )

    AsyncSessionLocal = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info(
        "database.engine.created",
        dialect=engine.dialect.name,
        pool_size=settings.database_pool_size,
        testing=settings.is_testing,
    )

    return engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    if AsyncSessionLocal is None:
        create_database_engine()
    return AsyncSessionLocal


@asynccontextmanager
async def transaction_session(
    sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """One short transaction; commits on success, rolls back on error."""
    factory = sessionmaker or get_sessionmaker()
    session = factory()

    try:
        yield session
        await session.commit()

    except (SQLAlchemyError, UnicodeError) as e:
        # Drivers raise UnicodeEncodeError for text they cannot send
        await session.rollback()
        logger.error("database.transaction_error", error_type=type(e).__name__)
        raise StoreError(
            message="Database transaction failed",
            details={"error": str(e)},
        ) from e

    finally:
        await session.close()


async def create_tables(target: Optional[AsyncEngine] = None) -> None:
    """Create all tables known to the model metadata."""
    from lead_intake.db.base import Base
    import lead_intake.models  # noqa: F401  (registers tables)

    target = target or create_database_engine()
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
        logger.info("database.connection_closed")
    engine = None
    AsyncSessionLocal = None
