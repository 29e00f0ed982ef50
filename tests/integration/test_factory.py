"""
Tests for the adapter factory.

Tests cover:
- Each backend built from configuration
- Fail-fast on missing replica settings
- open_db_adapter closes the adapter
"""

from pathlib import Path

import libsql_client
import pytest

from slowpost_store.adapters import (
    InMemoryDbAdapter,
    SqliteDbAdapter,
    TursoDbAdapter,
    create_db_adapter,
    open_db_adapter,
)
from slowpost_store.config import SqliteConfig, StoreBackend, StoreConfig, TursoConfig
from tests.fakes import RecordingClient


@pytest.fixture
def route_turso_to(monkeypatch):
    """Make the factory's Turso adapter use the given client."""
    created = []

    def route(client):
        def create_client(url, auth_token=None):
            created.append((url, auth_token))
            return client

        monkeypatch.setattr(libsql_client, "create_client", create_client)
        return created

    return route


class TestCreateDbAdapter:
    """Tests for create_db_adapter."""

    @pytest.mark.asyncio
    async def test_memory_backend(self):
        adapter = await create_db_adapter(StoreConfig(backend=StoreBackend.MEMORY))

        assert isinstance(adapter, InMemoryDbAdapter)
        await adapter.close()

    @pytest.mark.asyncio
    async def test_sqlite_backend(self, data_dir):
        path = Path(data_dir) / "nested" / "store.db"
        config = StoreConfig(backend=StoreBackend.SQLITE, sqlite=SqliteConfig(path=str(path)))

        adapter = await create_db_adapter(config)
        try:
            assert isinstance(adapter, SqliteDbAdapter)
            await adapter.add_document("profiles", "ada", {"username": "ada"})
        finally:
            await adapter.close()

        assert path.exists()

    @pytest.mark.asyncio
    async def test_turso_requires_url_and_token(self):
        """The replica backend never falls back when unconfigured."""
        with pytest.raises(ValueError, match="TURSO_URL and TURSO_AUTH_TOKEN"):
            await create_db_adapter(StoreConfig(backend=StoreBackend.TURSO))

    @pytest.mark.asyncio
    async def test_turso_requires_token(self):
        config = StoreConfig(
            backend=StoreBackend.TURSO,
            turso=TursoConfig(url="libsql://slowpost.turso.io"),
        )

        with pytest.raises(ValueError):
            await create_db_adapter(config)

    @pytest.mark.asyncio
    async def test_turso_backend_ensures_schema(self, turso_config, replica_url, route_turso_to):
        """The factory creates the tables before returning."""
        client = RecordingClient(libsql_client.create_client(replica_url))
        created = route_turso_to(client)
        config = StoreConfig(backend=StoreBackend.TURSO, turso=turso_config)

        adapter = await create_db_adapter(config)
        try:
            assert isinstance(adapter, TursoDbAdapter)
            assert created == [(turso_config.url, turso_config.auth_token)]
            assert client.kinds() == ["batch"]
            result = await client.inner.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            )
            assert {row[0] for row in result.rows} == {"documents", "links"}
        finally:
            await adapter.close()

    @pytest.mark.asyncio
    async def test_turso_unreachable_fails_at_startup(self, turso_config, route_turso_to):
        """A network failure during schema setup propagates from the factory."""
        client = RecordingClient()
        client.fail_with = ConnectionRefusedError("connection refused")
        route_turso_to(client)

        with pytest.raises(ConnectionRefusedError):
            await create_db_adapter(StoreConfig(backend=StoreBackend.TURSO, turso=turso_config))

        assert client.closed

    @pytest.mark.asyncio
    async def test_turso_rejected_token_fails_at_startup(self, turso_config, route_turso_to):
        client = RecordingClient()
        client.fail_with = libsql_client.LibsqlError("Unauthorized", "HTTP_401")
        route_turso_to(client)

        with pytest.raises(libsql_client.LibsqlError) as exc_info:
            await create_db_adapter(StoreConfig(backend=StoreBackend.TURSO, turso=turso_config))

        assert exc_info.value.code == "HTTP_401"
        assert client.closed


class TestOpenDbAdapter:
    """Tests for the open_db_adapter context manager."""

    @pytest.mark.asyncio
    async def test_closes_on_exit(self):
        async with open_db_adapter(StoreConfig(backend=StoreBackend.MEMORY)) as adapter:
            await adapter.add_document("profiles", "ada", {"username": "ada"})
            assert not adapter.is_closed

        assert adapter.is_closed

    @pytest.mark.asyncio
    async def test_closes_on_error(self):
        with pytest.raises(RuntimeError):
            async with open_db_adapter(StoreConfig(backend=StoreBackend.MEMORY)) as adapter:
                raise RuntimeError("boom")

        assert adapter.is_closed
