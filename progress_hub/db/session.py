# progress_hub/db/session.py
import os

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from progress_hub.db.base import Base

# Detect if we're running under pytest
IS_TEST = "PYTEST_CURRENT_TEST" in os.environ


def build_engine(db_url: str) -> AsyncEngine:
    """
    Create the async engine used by the database adapter.

    Under pytest every test runs its own event loop, so NullPool is used to
    avoid reusing connections across loops.
    """
    kwargs = {"echo": False}
    if IS_TEST:
        kwargs["poolclass"] = NullPool
    return create_async_engine(db_url, **kwargs)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
        class_=AsyncSession,
    )


async def init_schema(engine: AsyncEngine) -> None:
    """
    Create the app_data table if it does not exist yet.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

