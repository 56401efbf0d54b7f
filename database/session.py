"""
Async SQLAlchemy engine and session factory.
"""

from __future__ import annotations

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from database.models import Base


def is_in_memory_sqlite(database_url: str) -> bool:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return False
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


def uses_shared_connection(engine: AsyncEngine) -> bool:
    """True when every session on *engine* runs on the same connection."""
    return isinstance(engine.sync_engine.pool, StaticPool)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for *database_url*.

    In-memory SQLite (used by the test-suite) gets a single shared
    connection so the database survives across sessions.  File-backed
    SQLite and server databases get a regular connection pool.
    """
    if is_in_memory_sqlite(database_url):
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    if make_url(database_url).get_backend_name() == "sqlite":
        return create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create tables and the unique username index if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
