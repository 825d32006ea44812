"""SQLAlchemy 2.x async database setup.

This module defines the async engine and session factory but does not
hard-code any connection credentials.
"""

from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite (tests, local dev) has no connection pool sizing.
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": settings.db.pool_size, "max_overflow": settings.db.max_overflow}


engine: AsyncEngine = create_async_engine(
    settings.db.url,
    echo=settings.db.echo,
    **_engine_kwargs(settings.db.url),
)

AsyncSessionMaker = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI-friendly async session dependency.

    Usage:
        async def endpoint(session: AsyncSession = Depends(get_session)):
            ...
    """

    async with AsyncSessionMaker() as session:
        yield session
