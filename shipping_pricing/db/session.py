"""Async Session Factory — provides async DB sessions outside FastAPI.

Invariants:
    - In-memory SQLite URLs share ONE connection (StaticPool) so every session sees the same tables
    - Meant for scripts and test fixtures

Design Decisions:
    - Separate from infrastructure/database.py: no pooling knobs, no error mapping
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """Create an async engine; in-memory SQLite gets a StaticPool."""
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_async_engine(
            database_url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(database_url, echo=False)


def create_session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine."""
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
