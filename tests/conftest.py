"""
Shared fixtures for the Slowpost store tests.

The ``adapter`` fixture is parametrized over every backend so a test that
uses it runs once per adapter. The Turso adapter talks to a libSQL client
opened on a ``file:`` URL, which runs the same statements locally.
"""

import tempfile
from pathlib import Path

import libsql_client
import pytest
import pytest_asyncio

from slowpost_store.adapters import InMemoryDbAdapter, SqliteDbAdapter, TursoDbAdapter
from slowpost_store.config import SqliteConfig, TursoConfig

ADAPTER_KINDS = ["memory", "sqlite", "turso"]

TEST_TOKEN = "test-token"


@pytest.fixture
def data_dir():
    """Create temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def replica_url(data_dir):
    """file: URL of a local libSQL database."""
    return f"file:{Path(data_dir) / 'replica.db'}"


@pytest.fixture
def turso_config():
    return TursoConfig(url="libsql://slowpost-test.turso.io", auth_token=TEST_TOKEN)


@pytest_asyncio.fixture
async def turso_adapter(turso_config, replica_url):
    """Turso adapter on a local libSQL client, schema ensured."""
    adapter = TursoDbAdapter(turso_config, client=libsql_client.create_client(replica_url))
    await adapter.ensure_schema()
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def sqlite_adapter(data_dir):
    """SQLite adapter on a file in a temporary directory."""
    adapter = SqliteDbAdapter(SqliteConfig(path=str(Path(data_dir) / "slowpost.db")))
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture(params=ADAPTER_KINDS)
async def adapter(request, data_dir, turso_config, replica_url):
    """Each adapter in turn."""
    if request.param == "memory":
        db = InMemoryDbAdapter()
    elif request.param == "sqlite":
        db = SqliteDbAdapter(SqliteConfig(path=str(Path(data_dir) / "slowpost.db")))
    else:
        db = TursoDbAdapter(turso_config, client=libsql_client.create_client(replica_url))
        await db.ensure_schema()
    yield db
    await db.close()
