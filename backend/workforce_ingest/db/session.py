"""
Async SQLAlchemy session factory.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from workforce_ingest.core.config import settings
from workforce_ingest.db.models import Base


def engine_options(url: str) -> dict[str, Any]:
    """Pool settings for server databases; SQLite keeps its defaults."""
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 20, "max_overflow": 10, "pool_pre_ping": True}


def make_engine(url: str | None = None, echo: bool = False) -> AsyncEngine:
    url = url or settings.DATABASE_URL
    return create_async_engine(url, echo=echo, **engine_options(url))


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    """Create missing tables.  Schema changes are applied out of band."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = make_engine(echo=(settings.APP_ENV == "development"))

async_session = make_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an async DB session."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
