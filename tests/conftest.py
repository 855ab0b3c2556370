"""
Test infrastructure for the catalog API.

Strategy
--------
- SQLite via aiosqlite eliminates the need for a running Postgres instance
  in CI.  Each test gets its own database *file* under ``tmp_path``: the
  read pipeline opens one session per query and runs them concurrently,
  so every session must reach the same database through its own pooled
  connection, which an in-memory database cannot offer.
- The app's ``get_db`` and ``get_store`` dependencies are overridden so
  every test-time request uses the test session factory rather than the
  production one.
- Data written through ``db_session`` must be committed before the store
  (which uses separate sessions) can see it.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from catalog.database import Base, get_db, get_store
from catalog.main import app
from catalog.middleware import install_query_counter
from catalog.store import QueryEngine


# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine_test(tmp_path):
    """Create all tables in a fresh database file, dispose the engine after."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    # Register the per-request SQL query counter on the test engine.
    install_query_counter(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine_test):
    return async_sessionmaker(engine_test, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def store(session_factory) -> QueryEngine:
    """Query engine over the test database, as the read path sees it."""
    return QueryEngine(session_factory)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncSession:
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Dependency overrides: route requests to the test session factory
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def async_client(session_factory, store) -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_store():
        return store

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_store] = override_get_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
