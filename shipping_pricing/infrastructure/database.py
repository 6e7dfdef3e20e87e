"""Database Session Manager — per-request AsyncSession with rollback and error translation.

Invariants:
    - A session that raises is rolled back before the error leaves the manager
    - PricingError raised by a store or the service propagates unchanged
    - Values the database refuses (too long, out of range, constraint) → PricingValidationError (400)
    - Only connection / operational failures become DatabaseError (503)

Design Decisions:
    - One engine per process, created in the FastAPI lifespan via init_db
    - expire_on_commit=False: rows stay readable after the store commits
    - Stores translate the IntegrityErrors they expect (duplicate city, negative rebase,
      upsert race); _translate only sees what slipped past them
    - asyncpg failures not mapped to a DBAPI subclass arrive as plain DBAPIError;
      their SQLSTATE class decides (22 = data exception, 23 = integrity violation)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DataError, DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from shipping_pricing.core.errors import (
    DatabaseError, PricingError, PricingValidationError,
)

logger = logging.getLogger(__name__)


def _sqlstate(exc: DBAPIError) -> str:
    return str(
        getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None) or "",
    )


def _translate(exc: SQLAlchemyError) -> PricingError:
    """Map an unhandled SQLAlchemy failure to the error the caller should see."""
    if isinstance(exc, (OperationalError, InterfaceError)):
        return DatabaseError("Connection or operational error", "execute")
    if isinstance(exc, DBAPIError):
        state = _sqlstate(exc)
        if isinstance(exc, DataError) or state.startswith("22"):
            return PricingValidationError(
                "A value does not fit the stored column", "request",
            )
        if isinstance(exc, IntegrityError) or state.startswith("23"):
            return PricingValidationError(
                "The change violates a data constraint", "request",
            )
        return DatabaseError("Database driver error", "query")
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the engine and hands out sessions that roll back on failure."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine = create_async_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            error = _translate(e)
            log = logger.error if isinstance(error, DatabaseError) else logger.warning
            log(
                f"{type(e).__name__} escaped a store: {e}",
                extra={"error_code": error.code},
            )
            raise error from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """True when a trivial query round-trips (readiness probe)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
