"""
Database Configuration

Async SQLAlchemy engine, declarative base and session management.

The service layer owns transaction boundaries: repositories only flush,
services commit or roll back.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from admissions.core.config import settings


class Base(DeclarativeBase):
    """Declarative base for all admissions models."""


engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a request-scoped session.

    Anything left uncommitted when the request fails is rolled back.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Verify the database is reachable (called on startup)."""
    async with async_session_maker() as session:
        await session.execute(text("SELECT 1"))


async def close_db() -> None:
    """Dispose of the connection pool (called on shutdown)."""
    await engine.dispose()
