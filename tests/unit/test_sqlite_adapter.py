"""
Unit tests for the embedded SQLite adapter.

Tests cover:
- Persistence across reopen
- Idempotent schema creation
- Stored row format (JSON text in the documents/links tables)
- Driver errors translated or propagated
- In-memory databases
"""

import json
import sqlite3
from pathlib import Path

import pytest

from slowpost_store.adapters import SqliteDbAdapter
from slowpost_store.config import SqliteConfig
from slowpost_store.errors import AlreadyExistsError


@pytest.fixture
def db_path(data_dir):
    return str(Path(data_dir) / "data" / "slowpost.db")


class TestPersistence:
    """Tests for data surviving reopen."""

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, db_path):
        db = SqliteDbAdapter(SqliteConfig(path=db_path))
        await db.close()

        assert Path(db_path).exists()

    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, db_path):
        db = SqliteDbAdapter(SqliteConfig(path=db_path))
        await db.add_document("profiles", "ada", {"username": "ada"})
        await db.add_link("members", "writers", "ada", {"status": "approved"})
        await db.close()

        # Reopening runs the schema statements again
        db = SqliteDbAdapter(SqliteConfig(path=db_path))
        try:
            assert await db.get_document("profiles", "ada") == {"username": "ada"}
            assert await db.get_parent_links("members", "ada") == [{"status": "approved"}]
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_wal_mode(self, db_path):
        db = SqliteDbAdapter(SqliteConfig(path=db_path, wal_mode=True))
        try:
            (mode,) = db._conn.execute("PRAGMA journal_mode").fetchone()
            assert mode == "wal"
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_in_memory_database(self):
        db = SqliteDbAdapter(SqliteConfig(path=":memory:"))
        try:
            await db.add_document("profiles", "ada", {"username": "ada"})
            assert await db.get_document("profiles", "ada") == {"username": "ada"}
        finally:
            await db.close()


class TestStoredFormat:
    """The tables hold plain JSON text readable by other tooling."""

    @pytest.mark.asyncio
    async def test_rows_are_json_text(self, db_path):
        db = SqliteDbAdapter(SqliteConfig(path=db_path))
        await db.add_document("groups", "writers", {"groupName": "writers"})
        await db.add_link("members", "writers", "ada", {"status": "pending"})
        await db.close()

        conn = sqlite3.connect(db_path)
        try:
            (doc,) = conn.execute("SELECT collection, key, data FROM documents").fetchall()
            (link,) = conn.execute(
                "SELECT collection, parent_key, child_key, data FROM links"
            ).fetchall()
        finally:
            conn.close()

        assert doc[:2] == ("groups", "writers")
        assert json.loads(doc[2]) == {"groupName": "writers"}
        assert link[:3] == ("members", "writers", "ada")
        assert json.loads(link[3]) == {"status": "pending"}

    @pytest.mark.asyncio
    async def test_indexes_exist(self, sqlite_adapter):
        rows = sqlite_adapter._conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'index' AND tbl_name = 'links'"
        ).fetchall()

        names = {row["name"] for row in rows}
        assert {"idx_links_parent", "idx_links_child"} <= names


class TestErrors:
    """Tests for driver error handling."""

    @pytest.mark.asyncio
    async def test_duplicate_is_chained_to_integrity_error(self, sqlite_adapter):
        await sqlite_adapter.add_document("profiles", "ada", {})

        with pytest.raises(AlreadyExistsError) as exc_info:
            await sqlite_adapter.add_document("profiles", "ada", {})

        assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)

    @pytest.mark.asyncio
    async def test_not_null_violation_is_not_a_duplicate(self, sqlite_adapter):
        with pytest.raises(sqlite3.IntegrityError, match="NOT NULL"):
            await sqlite_adapter.add_document("profiles", None, {"username": "ada"})

        with pytest.raises(sqlite3.IntegrityError, match="NOT NULL"):
            await sqlite_adapter.add_link("members", "writers", None, {})

    @pytest.mark.asyncio
    async def test_use_after_close_propagates_driver_error(self, db_path):
        db = SqliteDbAdapter(SqliteConfig(path=db_path))
        await db.close()

        with pytest.raises(sqlite3.ProgrammingError):
            await db.get_document("profiles", "ada")
