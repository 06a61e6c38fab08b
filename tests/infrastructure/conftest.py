"""Infrastructure fixtures — SQLite file database per test."""

import pytest

from roomcast.infrastructure.database import DatabaseSessionManager


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'roomcast-test.db'}"


@pytest.fixture
async def db_manager(database_url):
    manager = DatabaseSessionManager(database_url)
    await manager.create_all()
    yield manager
    await manager.dispose()
