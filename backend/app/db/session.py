############################################################
#
# requestbooth - Live Event Song Request Service
#
# session.py: Async engine, session factory and FastAPI dependency
#
############################################################

"""Database engine and session management."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from backend.app.settings import get_settings


def get_async_database_url(url: str) -> str:
    """Map a sync driver URL onto its async counterpart."""
    if url.startswith("mysql+pymysql://"):
        return url.replace("mysql+pymysql://", "mysql+aiomysql://", 1)
    if url.startswith("mysql://"):
        return url.replace("mysql://", "mysql+aiomysql://", 1)
    if url.startswith("sqlite://") and "+aiosqlite" not in url:
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def create_engine_from_settings() -> AsyncEngine:
    """Create the application engine from settings."""
    settings = get_settings()
    url = get_async_database_url(settings.database_url)

    kwargs = {"echo": settings.database_echo, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = settings.database_pool_size
        kwargs["max_overflow"] = settings.database_max_overflow
        kwargs["pool_recycle"] = 3600

    return create_async_engine(url, **kwargs)


engine = create_engine_from_settings()

# expire_on_commit=False: handlers serialize ORM rows after committing
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session; rolls back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_async_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session context manager for code outside the request cycle."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create all tables (development and tests; production uses Alembic)."""
    from backend.app.db.base import Base
    from backend.app.db import models  # noqa: F401  register mappers

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
