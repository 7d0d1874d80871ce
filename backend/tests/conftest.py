"""
IdeaNote Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_session: AsyncSession on a private in-memory SQLite database
    ├── test_client: HTTPX AsyncClient wired to the app and to db_session
    ├── temp_storage: Temporary directory for file operations
    ├── sample_image_bytes: Minimal PNG bytes for upload tests
    └── jakarta: Fixed UTC+7 zone for scalar codec tests
"""

import os
import tempfile

# Settings are read at import time, so the environment must be set before
# anything from ideanote is imported
_test_root = tempfile.mkdtemp(prefix="ideanote_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_root}/health.db"
os.environ["STORAGE_ROOT"] = os.path.join(_test_root, "storage")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DEFAULT_OWNER"] = "tester"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

from datetime import timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from ideanote.database import Base, get_db_session  # noqa: E402
from ideanote.models.note import Note  # noqa: E402,F401


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_session():
    """
    Provides an AsyncSession on a fresh in-memory SQLite database.

    StaticPool keeps a single connection so the in-memory database
    survives across statements.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(db_session):
    """
    Provides an async HTTP test client bound to the db_session fixture.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from ideanote.main import app

    async def _override_session():
        yield db_session

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ══════════════════════════════════════════════════════════════════════════
# Data Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """
    Minimal PNG bytes for upload tests.

    Signature + IHDR chunk only; enough for extension/size validation,
    not a decodable picture.
    """
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
        b"\x1f\x15\xc4\x89"
    )


@pytest.fixture
def jakarta():
    """Fixed UTC+7 offset, independent of the host's zone database."""
    return timezone(timedelta(hours=7))
