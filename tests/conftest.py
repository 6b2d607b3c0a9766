"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from worklog.domain.models import WorkEntry
from worklog.infra.db import Base
from worklog.infra.repository import DatabaseEntryStore, LocalEntryStore


@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create a new session for a test"""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
def local_store(tmp_path):
    """A JSON document store in a temporary directory"""
    return LocalEntryStore(tmp_path / "worklog.json")


@pytest_asyncio.fixture(params=["database", "local"])
async def store(request, db_session, tmp_path):
    """Every EntryStore implementation, so contract tests run against both"""
    if request.param == "database":
        return DatabaseEntryStore(session=db_session)
    return LocalEntryStore(tmp_path / "worklog.json")


def _make_entry(date: str, start: str = "09:00", end: str = "17:00", duration: float = 8.0) -> WorkEntry:
    return WorkEntry(date=date, start_time=start, end_time=end, duration=duration)


@pytest.fixture
def make_entry():
    """Factory for WorkEntry objects with sensible defaults"""
    return _make_entry


@pytest.fixture
def march_entries():
    """Two March 2024 days and one April day"""
    return [
        _make_entry("2024-03-01", "09:00", "17:00", 8.0),
        _make_entry("2024-03-15", "10:00", "16:00", 6.0),
        _make_entry("2024-04-01", "09:00", "14:00", 5.0),
    ]
