"""Service test fixtures — async DB, fake status store, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - db_manager patched so readiness checks and status_store() use the test engine
    - app.state.completion_service is set per test, never started by a lifespan

Design Decisions:
    - SQLite in-memory: fast, no external dependency, enough for conditional UPDATEs
    - FakeStatusStore for sweep scenarios: failure injection and race simulation
      without depending on database timing
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from reconciler.db.base import Base
from reconciler.infrastructure.database import DatabaseSessionManager
import reconciler.infrastructure.database as db_module
import reconciler.models  # noqa: F401
from reconciler.main import app

from tests.services.fake_status_store import FakeStatusStore


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def test_db_manager(test_engine, test_session_factory, monkeypatch):
    """DatabaseSessionManager bound to the test engine, installed as the singleton."""
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = test_session_factory
    monkeypatch.setattr(db_module, "db_manager", manager)
    return manager


@pytest.fixture
def fake_store():
    return FakeStatusStore()


@pytest.fixture
async def client():
    """FastAPI test client; tests put their own service on app.state."""
    app.state.completion_service = None
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.state.completion_service = None
