"""Async engine and sessions for the requirements chat store.

Every REST request and every socket event gets its own ``AsyncSession`` from
``AsyncSessionLocal``; services commit or roll back the whole unit of work.
"""

import logging
import os
from typing import Any, AsyncGenerator, Dict

from dotenv import load_dotenv
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

load_dotenv()

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by all table models."""

    pass


DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required")

SQL_DEBUG = os.getenv("SQL_DEBUG", "false").lower() == "true"
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Pool settings for server databases; SQLite keeps the driver defaults."""
    options: Dict[str, Any] = {"echo": SQL_DEBUG, "future": True}
    if make_url(database_url).get_backend_name() != "sqlite":
        options.update(
            pool_size=DB_POOL_SIZE,
            max_overflow=DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    return options


engine = create_async_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session dependency."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    # Tables come from alembic (migrations/); nothing is created here
    logger.info("Using %s database", engine.dialect.name)


async def close_db() -> None:
    """Dispose pooled connections on shutdown."""
    await engine.dispose()
