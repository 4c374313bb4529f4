"""
Database base configuration and async session management
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

# Base class for models (must be defined first)
Base = declarative_base()

DEFAULT_DATABASE_URL = "postgresql+asyncpg://localhost/carenow"


def normalize_database_url(database_url: str = None) -> str:
    """Get database URL, converting to async format if needed"""
    database_url = database_url or DEFAULT_DATABASE_URL
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def create_engine(database_url: str = None, echo: bool = False) -> AsyncEngine:
    """Create the async database engine"""
    return create_async_engine(
        normalize_database_url(database_url),
        pool_pre_ping=True,
        echo=echo,
        future=True
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create the async session factory bound to an engine"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables registered on Base (development and tests; production uses Alembic)"""
    # Register models on Base.metadata
    from carenow.db.models import document  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Async dependency to get a database session from the application container.

    Example:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Item))
            return result.scalars().all()
    """
    session_factory = request.app.state.container.session_factory
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
