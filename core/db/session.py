from __future__ import annotations

from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from core.config import get_settings
from core.db.base import Base
# Import models so SQLAlchemy metadata is populated before init_models/create_all runs.
from core.db import models  # noqa: F401


@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    return create_async_engine(settings.postgres.dsn, future=True, echo=settings.environment == "development")


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), expire_on_commit=False, class_=AsyncSession)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with get_session_factory()() as session:
        yield session


async def init_models() -> None:
    """Create tables during bootstrap (for development)."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
