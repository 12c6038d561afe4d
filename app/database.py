"""
Async SQLAlchemy wiring for the optional document metadata store.

Without DATABASE_URL, ``engine`` and ``AsyncSessionLocal`` stay ``None``:
generation keeps working, document-record writes become no-ops and the
document routes answer 503.
"""
import logging
from typing import AsyncGenerator, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from app.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _build_engine(
    url: Optional[str],
) -> Tuple[Optional[AsyncEngine], Optional[async_sessionmaker]]:
    if not url:
        return None, None
    # NullPool: connections are not shared across event loops (tests, reload).
    db_engine = create_async_engine(url, pool_pre_ping=True, poolclass=NullPool)
    factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    return db_engine, factory


engine, AsyncSessionLocal = _build_engine(settings.DATABASE_URL)


def is_database_configured() -> bool:
    return AsyncSessionLocal is not None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session: committed on success, rolled back on error.

    Raises:
        HTTPException: 503 when no metadata store is configured.
    """
    if AsyncSessionLocal is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured",
        )

    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.error("Rolling back document session: %s", exc)
            raise


async def init_db() -> None:
    """Create the documents table if it does not exist yet."""
    if engine is None:
        logger.info("DATABASE_URL not set; document records are disabled")
        return

    # Registers DocumentRecord on Base.metadata.
    from app.models import database_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✓ Metadata store ready (%s)", engine.url.get_backend_name())


async def close_db() -> None:
    if engine is not None:
        await engine.dispose()
        logger.info("Database connections closed")
