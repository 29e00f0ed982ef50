"""
In-memory store adapter for testing.

This module provides a dict-backed DbAdapter for:
- Unit tests
- Integration tests of code that takes a DbAdapter
- Local development without a database

Invariants:
    - All data is lost on process exit
    - Same errors, messages and merge semantics as the SQL adapters
    - Values are copied through a JSON round trip on write and on read, so
      callers never alias stored state and see the same JSON shapes a SQL
      backend would return
    - Collection scans and link lookups preserve insertion order

How to change safely:
    - Keep behavior identical to the SQL adapters; the contract tests in
      tests/integration run against all of them
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..errors import AlreadyExistsError, DocumentNotFoundError, LinkNotFoundError
from ..kinds import Collection
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


def _clone(value: Any) -> Any:
    return json.loads(json.dumps(value))


class InMemoryDbAdapter:
    """In-memory implementation of DbAdapter.

    Documents are stored as ``{collection: {key: data}}`` and links as
    ``{collection: {parent_key: {child_key: data}}}``. Parent lookups scan
    the parents of a collection.

    Example:
        >>> db = InMemoryDbAdapter()
        >>> await db.add_link("members", "writers", "ada", {"status": "approved"})
        >>> await db.get_parent_links("members", "ada")
        [{'status': 'approved'}]
    """

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, JsonObject]] = {}
        self._links: dict[str, dict[str, dict[str, JsonObject]]] = {}
        self._closed = False

    @property
    def is_closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    async def get_document(self, collection: str, key: str) -> JsonObject | None:
        documents = self._documents.get(collection, {})
        if key not in documents:
            return None
        return _clone(documents[key])

    async def add_document(self, collection: str, key: str, data: JsonObject) -> None:
        require_object(data)
        documents = self._documents.setdefault(collection, {})
        if key in documents:
            raise AlreadyExistsError(collection, (key,))
        documents[key] = _clone(data)
        logger.debug("Added document", extra={"collection": collection, "key": key})

    async def update_document(self, collection: str, key: str, update: JsonObject) -> None:
        require_object(update)
        documents = self._documents.get(collection, {})
        if key not in documents:
            raise DocumentNotFoundError(collection, key)
        documents[key] = _clone(shallow_merge(documents[key], update))

    async def get_all_documents(self, collection: str) -> list[DocumentEntry]:
        return [
            DocumentEntry(key=key, data=_clone(data))
            for key, data in self._documents.get(collection, {}).items()
        ]

    async def get_child_links(self, collection: str, parent_key: str) -> list[JsonObject]:
        children = self._links.get(collection, {}).get(parent_key, {})
        return [_clone(data) for data in children.values()]

    async def get_parent_links(self, collection: str, child_key: str) -> list[JsonObject]:
        return [
            _clone(children[child_key])
            for children in self._links.get(collection, {}).values()
            if child_key in children
        ]

    async def add_link(
        self,
        collection: str,
        parent_key: str,
        child_key: str,
        data: JsonObject,
    ) -> None:
        require_object(data)
        children = self._links.setdefault(collection, {}).setdefault(parent_key, {})
        if child_key in children:
            raise AlreadyExistsError(collection, (parent_key, child_key))
        children[child_key] = _clone(data)
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
        children = self._links.get(collection, {}).get(parent_key, {})
        if child_key not in children:
            raise LinkNotFoundError(collection, parent_key, child_key)
        children[child_key] = _clone(shallow_merge(children[child_key], update))

    async def delete_link(self, collection: str, parent_key: str, child_key: str) -> None:
        parents = self._links.get(collection, {})
        children = parents.get(parent_key)
        if children is None:
            return
        children.pop(child_key, None)
        if not children:
            del parents[parent_key]

    def _link_items(
        self,
        collection: str,
        *,
        parent_key: str | None = None,
        child_key: str | None = None,
    ) -> list[tuple[str, str, JsonObject]]:
        """(parent_key, child_key, data) of matching links, in insertion order."""
        items = []
        for parent, children in self._links.get(collection, {}).items():
            if parent_key is not None and parent != parent_key:
                continue
            for child, data in children.items():
                if child_key is not None and child != child_key:
                    continue
                items.append((parent, child, data))
        return items

    async def get_user_groups_with_membership(
        self,
        username: str,
        viewer_username: str | None = None,
    ) -> list[GroupMembership]:
        members = self._links.get(Collection.MEMBERS.value, {})
        result = []
        for group_name, _, membership in self._link_items(
            Collection.MEMBERS.value, child_key=username
        ):
            group = await self.get_document(Collection.GROUPS.value, group_name)
            if group is None:
                continue

            viewer_membership = None
            if viewer_username is not None:
                viewer_link = members.get(group_name, {}).get(viewer_username)
                if viewer_link is not None:
                    viewer_membership = _clone(viewer_link)

            result.append(
                GroupMembership(
                    group=group,
                    membership=_clone(membership),
                    viewer_membership=viewer_membership,
                )
            )
        return result

    async def get_group_members_with_profiles(self, group_name: str) -> list[MemberProfile]:
        result = []
        for _, username, membership in self._link_items(
            Collection.MEMBERS.value, parent_key=group_name
        ):
            profile = await self.get_document(Collection.PROFILES.value, username)
            if profile is not None:
                result.append(MemberProfile(membership=_clone(membership), profile=profile))
        return result

    async def get_subscriptions_with_profiles(self, username: str) -> list[SubscriptionProfile]:
        result = []
        for subscribed_to, _, subscription in self._link_items(
            Collection.SUBSCRIPTIONS.value, child_key=username
        ):
            profile = await self.get_document(Collection.PROFILES.value, subscribed_to)
            if profile is not None:
                result.append(
                    SubscriptionProfile(subscription=_clone(subscription), profile=profile)
                )
        return result

    async def get_subscribers_with_profiles(self, username: str) -> list[SubscriptionProfile]:
        result = []
        for _, subscriber, subscription in self._link_items(
            Collection.SUBSCRIPTIONS.value, parent_key=username
        ):
            profile = await self.get_document(Collection.PROFILES.value, subscriber)
            if profile is not None:
                result.append(
                    SubscriptionProfile(subscription=_clone(subscription), profile=profile)
                )
        return result

    async def get_updates_with_profiles_and_groups(self, username: str) -> list[UpdateEntry]:
        result = []
        for _, _, update in self._link_items(Collection.UPDATES.value, parent_key=username):
            actor = update.get("username")
            if not isinstance(actor, str):
                continue
            profile = await self.get_document(Collection.PROFILES.value, actor)
            if profile is None:
                continue

            group = None
            group_name = update.get("groupName")
            if isinstance(group_name, str):
                group = await self.get_document(Collection.GROUPS.value, group_name)

            result.append(UpdateEntry(update=_clone(update), profile=profile, group=group))
        return result

    async def close(self) -> None:
        """Mark closed. Stored data is kept so tests can inspect it afterwards."""
        self._closed = True
        logger.debug("InMemoryDbAdapter closed")

    def reset(self) -> None:
        """Clear all documents and links."""
        self._documents.clear()
        self._links.clear()
