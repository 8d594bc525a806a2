"""
Database access for the sample API.

The service runs two Fargate tasks against a single Aurora writer, each with
its own engine, so the per-task pool is sized from Settings
(DB_POOL_SIZE + DB_MAX_OVERFLOW connections per task at most).

Both the startup check and GET /api/pgtest run the same probe query.
"""
import logging
from collections.abc import AsyncGenerator
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sample_api.core.config import get_settings

logger = logging.getLogger(__name__)

PROBE_QUERY = text("SELECT CURRENT_TIMESTAMP")

_settings = get_settings()

# Connections are opened on first use, not here.
engine = create_async_engine(
    _settings.database_url,
    pool_size=_settings.db_pool_size,
    max_overflow=_settings.db_max_overflow,
    pool_recycle=_settings.db_pool_recycle_seconds,
    pool_pre_ping=True,
    echo=_settings.is_development,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def database_time(session: AsyncSession) -> str:
    """Run the probe query and return the server's clock as text."""
    result = await session.execute(PROBE_QUERY)
    now = result.scalar_one()
    return now.isoformat() if isinstance(now, datetime) else str(now)


async def check_db_connection(
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
) -> bool:
    try:
        async with session_factory() as session:
            now = await database_time(session)
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Database probe failed: %s", exc)
        return False
    logger.debug("Database time is %s", now)
    return True
