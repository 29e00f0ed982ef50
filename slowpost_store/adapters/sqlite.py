"""
Embedded SQLite store adapter.

This module wraps a local, synchronous sqlite3 connection behind the async
DbAdapter interface. It runs in a single process with no network latency
and no replica lag.

Invariants:
    - One connection per adapter, opened at construction, released by close()
    - Schema creation is idempotent and runs on every construction
    - Only primary-key violations become AlreadyExistsError; other
      IntegrityErrors (NOT NULL, CHECK) propagate unchanged
    - Autocommit: each statement is its own transaction
    - update_* reads, merges and writes in separate statements

How to change safely:
    - Statement text lives in sql.py and is shared with the Turso adapter
    - Test against a file database as well as ":memory:"
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from ..config import SqliteConfig
from ..errors import AlreadyExistsError, DocumentNotFoundError, LinkNotFoundError
from ..kinds import Collection
from . import sql
from .base import (
    DocumentEntry,
    GroupMembership,
    JsonObject,
    MemberProfile,
    SubscriptionProfile,
    UpdateEntry,
    require_object,
    shallow_merge,
)

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class SqliteDbAdapter:
    """SQLite implementation of DbAdapter.

    Thread safety:
        The connection is created with check_same_thread=False so an adapter
        built on one thread can be closed from another. SQLite serializes
        writers; busy_timeout covers lock waits from other processes sharing
        the file.

    Example:
        >>> db = SqliteDbAdapter(SqliteConfig(path="data/slowpost.db"))
        >>> await db.add_document("groups", "writers", {"groupName": "writers"})
        >>> await db.close()
    """

    def __init__(self, config: SqliteConfig | None = None) -> None:
        """Open the database and ensure the schema.

        Args:
            config: SQLite configuration (defaults to data/slowpost.db)
        """
        self.config = config or SqliteConfig()
        self._conn = self._connect()
        self._create_schema()
        logger.info("Opened SQLite store", extra={"path": self.config.path})

    def _connect(self) -> sqlite3.Connection:
        path = self.config.path
        if path != MEMORY_PATH:
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            path,
            timeout=self.config.busy_timeout_ms / 1000.0,
            isolation_level=None,  # Autocommit
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row

        conn.execute(f"PRAGMA busy_timeout = {self.config.busy_timeout_ms}")
        if self.config.wal_mode and path != MEMORY_PATH:
            conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        return conn

    def _create_schema(self) -> None:
        for statement in sql.SCHEMA_STATEMENTS:
            self._conn.execute(statement)

    def _fetchone(self, statement: str, params: tuple[Any, ...]) -> sqlite3.Row | None:
        return self._conn.execute(statement, params).fetchone()

    def _fetchall(self, statement: str, params: tuple[Any, ...]) -> list[sqlite3.Row]:
        return self._conn.execute(statement, params).fetchall()

    def _insert(
        self,
        statement: str,
        params: tuple[Any, ...],
        collection: str,
        keys: tuple[str, ...],
    ) -> None:
        try:
            self._conn.execute(statement, params)
        except sqlite3.IntegrityError as e:
            if sql.is_duplicate_key(getattr(e, "sqlite_errorname", None), str(e)):
                raise AlreadyExistsError(collection, keys) from e
            raise

    async def get_document(self, collection: str, key: str) -> JsonObject | None:
        row = self._fetchone(sql.SELECT_DOCUMENT, (collection, key))
        return json.loads(row["data"]) if row else None

    async def add_document(self, collection: str, key: str, data: JsonObject) -> None:
        require_object(data)
        self._insert(
            sql.INSERT_DOCUMENT,
            (collection, key, json.dumps(data)),
            collection,
            (key,),
        )
        logger.debug("Added document", extra={"collection": collection, "key": key})

    async def update_document(self, collection: str, key: str, update: JsonObject) -> None:
        require_object(update)
        existing = await self.get_document(collection, key)
        if existing is None:
            raise DocumentNotFoundError(collection, key)
        merged = shallow_merge(existing, update)
        self._conn.execute(sql.UPDATE_DOCUMENT, (json.dumps(merged), collection, key))

    async def get_all_documents(self, collection: str) -> list[DocumentEntry]:
        return [
            DocumentEntry(key=row["key"], data=json.loads(row["data"]))
            for row in self._fetchall(sql.SELECT_ALL_DOCUMENTS, (collection,))
        ]

    async def get_child_links(self, collection: str, parent_key: str) -> list[JsonObject]:
        rows = self._fetchall(sql.SELECT_CHILD_LINKS, (collection, parent_key))
        return [json.loads(row["data"]) for row in rows]

    async def get_parent_links(self, collection: str, child_key: str) -> list[JsonObject]:
        rows = self._fetchall(sql.SELECT_PARENT_LINKS, (collection, child_key))
        return [json.loads(row["data"]) for row in rows]

    async def add_link(
        self,
        collection: str,
        parent_key: str,
        child_key: str,
        data: JsonObject,
    ) -> None:
        require_object(data)
        self._insert(
            sql.INSERT_LINK,
            (collection, parent_key, child_key, json.dumps(data)),
            collection,
            (parent_key, child_key),
        )
        logger.debug(
            "Added link",
            extra={"collection": collection, "parent_key": parent_key, "child_key": child_key},
        )

    async def update_link(
        self,
        collection: str,
        parent_key: str,
        child_key: str,
        update: JsonObject,
    ) -> None:
        require_object(update)
        row = self._fetchone(sql.SELECT_LINK, (collection, parent_key, child_key))
        if row is None:
            raise LinkNotFoundError(collection, parent_key, child_key)
        merged = shallow_merge(json.loads(row["data"]), update)
        self._conn.execute(
            sql.UPDATE_LINK,
            (json.dumps(merged), collection, parent_key, child_key),
        )

    async def delete_link(self, collection: str, parent_key: str, child_key: str) -> None:
        self._conn.execute(sql.DELETE_LINK, (collection, parent_key, child_key))

    async def get_user_groups_with_membership(
        self,
        username: str,
        viewer_username: str | None = None,
    ) -> list[GroupMembership]:
        rows = self._fetchall(
            sql.SELECT_USER_GROUPS_WITH_MEMBERSHIP,
            (Collection.MEMBERS.value, Collection.GROUPS.value, username, viewer_username),
        )
        return [
            GroupMembership(
                group=json.loads(row["group_data"]),
                membership=json.loads(row["membership_data"]),
                viewer_membership=(
                    json.loads(row["viewer_membership_data"])
                    if row["viewer_membership_data"] is not None
                    else None
                ),
            )
            for row in rows
        ]

    async def get_group_members_with_profiles(self, group_name: str) -> list[MemberProfile]:
        rows = self._fetchall(
            sql.SELECT_GROUP_MEMBERS_WITH_PROFILES,
            (Collection.MEMBERS.value, Collection.PROFILES.value, group_name),
        )
        return [
            MemberProfile(
                membership=json.loads(row["membership_data"]),
                profile=json.loads(row["profile_data"]),
            )
            for row in rows
        ]

    async def get_subscriptions_with_profiles(self, username: str) -> list[SubscriptionProfile]:
        rows = self._fetchall(
            sql.SELECT_SUBSCRIPTIONS_WITH_PROFILES,
            (Collection.SUBSCRIPTIONS.value, Collection.PROFILES.value, username),
        )
        return [
            SubscriptionProfile(
                subscription=json.loads(row["subscription_data"]),
                profile=json.loads(row["profile_data"]),
            )
            for row in rows
        ]

    async def get_subscribers_with_profiles(self, username: str) -> list[SubscriptionProfile]:
        rows = self._fetchall(
            sql.SELECT_SUBSCRIBERS_WITH_PROFILES,
            (Collection.SUBSCRIPTIONS.value, Collection.PROFILES.value, username),
        )
        return [
            SubscriptionProfile(
                subscription=json.loads(row["subscription_data"]),
                profile=json.loads(row["profile_data"]),
            )
            for row in rows
        ]

    async def get_updates_with_profiles_and_groups(self, username: str) -> list[UpdateEntry]:
        rows = self._fetchall(
            sql.SELECT_UPDATES_WITH_PROFILES_AND_GROUPS,
            (
                Collection.UPDATES.value,
                Collection.PROFILES.value,
                Collection.GROUPS.value,
                username,
            ),
        )
        return [
            UpdateEntry(
                update=json.loads(row["update_data"]),
                profile=json.loads(row["profile_data"]),
                group=json.loads(row["group_data"]) if row["group_data"] is not None else None,
            )
            for row in rows
        ]

    async def close(self) -> None:
        """Close the connection."""
        self._conn.close()
        logger.info("Closed SQLite store", extra={"path": self.config.path})
