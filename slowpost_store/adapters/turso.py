"""
Networked libSQL (Turso) store adapter.

This module reaches a remote libSQL server or edge replica through the
libSQL client (``libsql_client.create_client``). Statements are the same
text the embedded adapter runs (see sql.py), with positional arguments.

Invariants:
    - No retries; driver and network errors propagate unwrapped
    - A primary-key violation on insert raises AlreadyExistsError, chained
      to the client's LibsqlError
    - Reads may lag writes on a replica; only eventual visibility is promised
    - update_* reads and writes in two round trips without isolation

How to change safely:
    - Keep statement text in sql.py so both SQL backends stay identical
    - Run the contract tests against a file: client and a real server
"""

from __future__ import annotations

import json
import logging
from typing import Any

import libsql_client

from ..config import TursoConfig
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

Row = dict[str, Any]


class TursoDbAdapter:
    """libSQL/Turso implementation of DbAdapter.

    Attributes:
        config: Turso configuration
        sync_interval_ms: Replica sync interval from configuration, if set.
            The remote client syncs on every request; the value is kept for
            clients that hold a local replica.

    Example:
        >>> db = TursoDbAdapter(TursoConfig(url="libsql://app.turso.io", auth_token="..."))
        >>> await db.ensure_schema()
        >>> await db.get_document("profiles", "ada")
        >>> await db.close()
    """

    def __init__(
        self,
        config: TursoConfig,
        client: libsql_client.Client | None = None,
    ) -> None:
        """Initialize the adapter.

        No request is made here; call ensure_schema() to verify the
        connection.

        Args:
            config: Turso configuration with url and auth_token
            client: Optional pre-built libSQL client (tests pass a file: client)

        Raises:
            ValueError: If url or auth_token is missing
        """
        if not config.url or not config.auth_token:
            raise ValueError("TursoDbAdapter requires both a url and an auth_token")

        self.config = config
        self.sync_interval_ms = config.sync_interval_ms
        if client is None:
            client = libsql_client.create_client(config.url, auth_token=config.auth_token)
        self._client = client
        logger.info(
            "Created Turso store client",
            extra={"url": config.url, "sync_interval_ms": self.sync_interval_ms},
        )

    async def _execute(self, text: str, *args: Any) -> list[Row]:
        result_set = await self._client.execute(text, list(args))
        return [dict(zip(result_set.columns, row)) for row in result_set.rows]

    async def _insert(
        self,
        text: str,
        args: tuple[Any, ...],
        collection: str,
        keys: tuple[str, ...],
    ) -> None:
        try:
            await self._execute(text, *args)
        except libsql_client.LibsqlError as e:
            if sql.is_duplicate_key(e.code, str(e)):
                raise AlreadyExistsError(collection, keys) from e
            raise

    async def ensure_schema(self) -> None:
        """Create tables and indexes if missing, in a single batch."""
        await self._client.batch(list(sql.SCHEMA_STATEMENTS))
        logger.info("Ensured Turso schema", extra={"url": self.config.url})

    async def get_document(self, collection: str, key: str) -> JsonObject | None:
        rows = await self._execute(sql.SELECT_DOCUMENT, collection, key)
        return json.loads(rows[0]["data"]) if rows else None

    async def add_document(self, collection: str, key: str, data: JsonObject) -> None:
        require_object(data)
        await self._insert(
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
        await self._execute(sql.UPDATE_DOCUMENT, json.dumps(merged), collection, key)

    async def get_all_documents(self, collection: str) -> list[DocumentEntry]:
        rows = await self._execute(sql.SELECT_ALL_DOCUMENTS, collection)
        return [DocumentEntry(key=row["key"], data=json.loads(row["data"])) for row in rows]

    async def get_child_links(self, collection: str, parent_key: str) -> list[JsonObject]:
        rows = await self._execute(sql.SELECT_CHILD_LINKS, collection, parent_key)
        return [json.loads(row["data"]) for row in rows]

    async def get_parent_links(self, collection: str, child_key: str) -> list[JsonObject]:
        rows = await self._execute(sql.SELECT_PARENT_LINKS, collection, child_key)
        return [json.loads(row["data"]) for row in rows]

    async def add_link(
        self,
        collection: str,
        parent_key: str,
        child_key: str,
        data: JsonObject,
    ) -> None:
        require_object(data)
        await self._insert(
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
        rows = await self._execute(sql.SELECT_LINK, collection, parent_key, child_key)
        if not rows:
            raise LinkNotFoundError(collection, parent_key, child_key)
        merged = shallow_merge(json.loads(rows[0]["data"]), update)
        await self._execute(
            sql.UPDATE_LINK, json.dumps(merged), collection, parent_key, child_key
        )

    async def delete_link(self, collection: str, parent_key: str, child_key: str) -> None:
        await self._execute(sql.DELETE_LINK, collection, parent_key, child_key)

    async def get_user_groups_with_membership(
        self,
        username: str,
        viewer_username: str | None = None,
    ) -> list[GroupMembership]:
        rows = await self._execute(
            sql.SELECT_USER_GROUPS_WITH_MEMBERSHIP,
            Collection.MEMBERS.value,
            Collection.GROUPS.value,
            username,
            viewer_username,
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
        rows = await self._execute(
            sql.SELECT_GROUP_MEMBERS_WITH_PROFILES,
            Collection.MEMBERS.value,
            Collection.PROFILES.value,
            group_name,
        )
        return [
            MemberProfile(
                membership=json.loads(row["membership_data"]),
                profile=json.loads(row["profile_data"]),
            )
            for row in rows
        ]

    async def get_subscriptions_with_profiles(self, username: str) -> list[SubscriptionProfile]:
        rows = await self._execute(
            sql.SELECT_SUBSCRIPTIONS_WITH_PROFILES,
            Collection.SUBSCRIPTIONS.value,
            Collection.PROFILES.value,
            username,
        )
        return [
            SubscriptionProfile(
                subscription=json.loads(row["subscription_data"]),
                profile=json.loads(row["profile_data"]),
            )
            for row in rows
        ]

    async def get_subscribers_with_profiles(self, username: str) -> list[SubscriptionProfile]:
        rows = await self._execute(
            sql.SELECT_SUBSCRIBERS_WITH_PROFILES,
            Collection.SUBSCRIPTIONS.value,
            Collection.PROFILES.value,
            username,
        )
        return [
            SubscriptionProfile(
                subscription=json.loads(row["subscription_data"]),
                profile=json.loads(row["profile_data"]),
            )
            for row in rows
        ]

    async def get_updates_with_profiles_and_groups(self, username: str) -> list[UpdateEntry]:
        rows = await self._execute(
            sql.SELECT_UPDATES_WITH_PROFILES_AND_GROUPS,
            Collection.UPDATES.value,
            Collection.PROFILES.value,
            Collection.GROUPS.value,
            username,
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
        """Close the libSQL client."""
        await self._client.close()
        logger.info("Turso store client closed", extra={"url": self.config.url})
