"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database (one shared StaticPool connection)
    - get_db dependency overridden to use the test DB
    - db_manager patched so the readiness probe sees the test engine
    - Seeding through test_db always commits before the client is used

Design Decisions:
    - SQLite in-memory: fast, no external dependency; supports CHECK constraints,
      functional unique indexes and ON CONFLICT DO UPDATE, which the stores rely on
"""

import pytest
from httpx import ASGITransport, AsyncClient

from shipping_pricing.config import Settings
from shipping_pricing.db.base import Base
from shipping_pricing.db.session import create_engine_for_url, create_session_factory
from shipping_pricing.infrastructure.database import get_db, DatabaseSessionManager
import shipping_pricing.infrastructure.database as db_module
import shipping_pricing.models  # noqa: F401
from shipping_pricing.main import app
from shipping_pricing.services.pricing_service import PricingService

ADMIN_ID = "admin-1"
USER_ID = "user-1"
OTHER_USER_ID = "user-2"


def caller_headers(user_id: str, admin: bool = False) -> dict:
    headers = {"X-User-Id": user_id}
    if admin:
        headers["X-User-Roles"] = "client,admin"
    return headers


@pytest.fixture
async def test_engine():
    engine = create_engine_for_url("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def settings():
    return Settings(upsert_max_retries=3, default_page_size=10, max_page_size=100)


@pytest.fixture
def service(test_db, settings):
    return PricingService(test_db, settings)


@pytest.fixture
def admin_headers():
    return caller_headers(ADMIN_ID, admin=True)


@pytest.fixture
def user_headers():
    return caller_headers(USER_ID)


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def make_headers():
    return caller_headers
