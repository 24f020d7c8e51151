"""
Database configuration for Cutroom.

Provides the async SQLAlchemy engine factory, session factory, and base
model class used by the SQL data store.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the configured database URL."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Required for SQLite with async
        connect_args["check_same_thread"] = False

    return create_async_engine(
        database_url,
        echo=echo,
        connect_args=connect_args,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_all_tables(engine: AsyncEngine) -> None:
    """Create all tables in the database (for development/testing)."""
    # Import models so they are registered on Base.metadata
    from cutroom import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all_tables(engine: AsyncEngine) -> None:
    """Drop all tables in the database (for development/testing)."""
    from cutroom import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
