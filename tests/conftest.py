"""
Pytest configuration and shared fixtures.
"""

import pytest
import pytest_asyncio

from app.config import Settings
from app.database import Database
from app.repos.fingerprint_repo import FingerPrintRepository


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'fingerprints.db'}"


@pytest.fixture
def settings(database_url) -> Settings:
    return Settings(database_url=database_url)


@pytest_asyncio.fixture
async def database(database_url):
    """Create a throwaway SQLite store with tables."""
    db = Database(database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def repo(database):
    async with database.session() as session:
        yield FingerPrintRepository(session)
