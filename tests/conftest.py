"""
Test infrastructure for the Virtyum API.

Strategy
--------
- SQLite via aiosqlite removes the need for a running Postgres instance,
  keeping the suite fast and self-contained.
- The database lives in a temporary *file* with NullPool rather than
  in-memory with StaticPool: the stats snapshot runs its reductions in
  separate sessions at the same time, which needs independent
  connections that all see the same data.
- The app's get_db, get_session_factory and get_store dependencies are
  overridden so every request uses the test engine.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state.
"""
import os
import tempfile

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

from virtyum.database import Base, StoreConnection, get_db, get_session_factory, get_store
from virtyum.main import app
from virtyum.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database engine: SQLite file with aiosqlite
# ---------------------------------------------------------------------------

_DB_DIR = tempfile.mkdtemp(prefix="virtyum-tests-")
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"

engine_test = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)

# Register the per-request SQL query counter on the test engine.
install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

store_test = StoreConnection(engine_test)


# ---------------------------------------------------------------------------
# Dependency overrides
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_session_factory] = lambda: async_session_test
app.dependency_overrides[get_store] = lambda: store_test


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """Live AsyncSession for tests that call repository functions directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def session_factory():
    return async_session_test


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def test_engine():
    return engine_test
