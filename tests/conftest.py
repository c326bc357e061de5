"""
SuiviTens Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite file (aiosqlite) with the schema created,
       an app built around that database, and an HTTPX client talking to the
       app in-process.

Fixture Hierarchy (all function-scoped):
    ├── test_settings: Settings pointing at a temporary SQLite file
    ├── database: Database handle with tables created
    ├── db_session: AsyncSession for service-level tests
    ├── identity_resolver: StaticTokenResolver for alice and bob
    ├── test_client: HTTPX AsyncClient over ASGITransport
    ├── alice_headers / bob_headers: bearer headers for the two test users
    ├── sample_payload: a valid create body
    └── mock_db_session: AsyncMock session for failure-path tests
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# Set before any suivitens import: suivitens.main builds a module-level app
# from the environment at import time
os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='suivitens_test_')}/import.db"
)
os.environ["AUTH_TOKENS"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from suivitens.config import Settings  # noqa: E402
from suivitens.database import Database  # noqa: E402
from suivitens.main import create_app  # noqa: E402
from suivitens.services.identity import StaticTokenResolver  # noqa: E402

TEST_TOKENS = {
    "token-alice": "alice",
    "token-bob": "bob",
}


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        log_level="WARNING",
        _env_file=None,
    )


@pytest_asyncio.fixture
async def database(test_settings):
    """Database handle backed by a fresh SQLite file, schema created."""
    db = Database.from_settings(test_settings)
    await db.create_tables()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def identity_resolver():
    return StaticTokenResolver(TEST_TOKENS)


@pytest_asyncio.fixture
async def test_client(test_settings, database, identity_resolver):
    """
    HTTPX AsyncClient routed directly into the app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    app = create_app(
        settings=test_settings,
        database=database,
        identity_resolver=identity_resolver,
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def alice_headers():
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def bob_headers():
    return {"Authorization": "Bearer token-bob"}


@pytest.fixture
def sample_payload():
    """A valid create body, in API (camelCase) field names."""
    return {
        "systolic": 120,
        "diastolic": 80,
        "pulse": 70,
        "measurementDate": "2024-01-15",
        "measurementTime": "08:30",
    }


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute = AsyncMock(side_effect=RuntimeError("connection lost"))
        with pytest.raises(DatabaseError):
            await service.list_measurements(mock_db_session, "alice")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session
