"""Database session management for the audit store.

TAG: [DATABASE] [SESSION]

This module provides async database engine and session management
using SQLAlchemy 2.0 async patterns.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from dag_engine.core.config import settings
from dag_engine.models.base import Base

# Local SQLite file when no PostgreSQL DSN is configured
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./dag_audit.db"

if settings.DATABASE_URL:
    engine: AsyncEngine = create_async_engine(
        str(settings.DATABASE_URL),
        pool_pre_ping=True,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        echo=settings.DEBUG,
    )
else:
    engine = create_async_engine(DEFAULT_DATABASE_URL, echo=settings.DEBUG)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create the audit tables if they do not exist yet."""
    # Register models on Base.metadata
    import dag_engine.models.audit  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency for FastAPI.

    Yields an async session and ensures proper cleanup after request.
    Commits on success, rolls back on exception.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


__all__ = [
    "DEFAULT_DATABASE_URL",
    "async_session",
    "engine",
    "get_db",
    "init_db",
]
