"""
Unit tests for the in-memory adapter.

Tests cover:
- Insertion order of scans and link lookups
- close() and reset()
- Storage layout after deletes
"""

import pytest

from slowpost_store.adapters import InMemoryDbAdapter


@pytest.fixture
def db():
    return InMemoryDbAdapter()


class TestOrdering:
    """The in-memory adapter preserves insertion order."""

    @pytest.mark.asyncio
    async def test_documents_in_insertion_order(self, db):
        for key in ["c", "a", "b"]:
            await db.add_document("profiles", key, {"k": key})

        entries = await db.get_all_documents("profiles")

        assert [entry.key for entry in entries] == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_parent_links_in_insertion_order(self, db):
        for group in ["writers", "artists", "readers"]:
            await db.add_link("members", group, "ada", {"g": group})

        links = await db.get_parent_links("members", "ada")

        assert [link["g"] for link in links] == ["writers", "artists", "readers"]


class TestLifecycle:
    """Tests for close and reset."""

    @pytest.mark.asyncio
    async def test_close_keeps_data(self, db):
        await db.add_document("profiles", "ada", {"username": "ada"})

        await db.close()

        assert db.is_closed
        assert await db.get_document("profiles", "ada") == {"username": "ada"}

    @pytest.mark.asyncio
    async def test_reset_clears_everything(self, db):
        await db.add_document("profiles", "ada", {"username": "ada"})
        await db.add_link("members", "writers", "ada", {})

        db.reset()

        assert await db.get_document("profiles", "ada") is None
        assert await db.get_child_links("members", "writers") == []
        # Keys are free again
        await db.add_document("profiles", "ada", {"username": "ada"})

    @pytest.mark.asyncio
    async def test_delete_last_child_removes_parent_entry(self, db):
        await db.add_link("members", "writers", "ada", {})

        await db.delete_link("members", "writers", "ada")

        assert "writers" not in db._links["members"]


class TestJsonShapes:
    """Values come back in the shapes a SQL backend would return."""

    @pytest.mark.asyncio
    async def test_tuple_becomes_list(self, db):
        await db.add_document("profiles", "ada", {"pair": (1, 2)})

        assert await db.get_document("profiles", "ada") == {"pair": [1, 2]}

    @pytest.mark.asyncio
    async def test_non_json_payload_rejected(self, db):
        with pytest.raises(TypeError):
            await db.add_document("profiles", "ada", {"when": object()})

        assert await db.get_document("profiles", "ada") is None

    @pytest.mark.asyncio
    async def test_update_without_username_is_skipped_in_feed(self, db):
        await db.add_document("profiles", "grace", {"username": "grace"})
        await db.add_link("updates", "ada", "u1", {"id": "u1", "username": None})
        await db.add_link("updates", "ada", "u2", {"id": "u2", "username": "grace"})

        rows = await db.get_updates_with_profiles_and_groups("ada")

        assert [row.update["id"] for row in rows] == ["u2"]
