"""
Base protocol and types for the document/link store.

This module defines the DbAdapter protocol that all backends must implement,
along with the result types of the join queries and the adapter factory.

Two storage primitives sit under every feature of the application:
- Documents: (collection, key) -> JSON object
- Links: (collection, parent_key, child_key) -> JSON object, readable from
  either endpoint

Invariants:
    - get_document returns None for a missing key; it never raises NotFound
    - update_* shallow-merges and raises NotFound when the target is missing
    - delete_link is idempotent
    - add_* raises AlreadyExistsError on a duplicate key on every backend
    - add_* and update_* accept only dict payloads (TypeError otherwise)
    - No referential integrity between links and documents
    - update_* is read-then-write without isolation; last writer wins

How to change safely:
    - Protocol changes require updating all three implementations
    - Run the contract tests in tests/integration against every backend
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..config import StoreConfig

logger = logging.getLogger(__name__)

JsonObject = dict[str, Any]


@dataclass(frozen=True)
class DocumentEntry:
    """A document returned by a collection scan.

    Attributes:
        key: Document key
        data: Deserialized payload
    """

    key: str
    data: JsonObject


@dataclass(frozen=True)
class GroupMembership:
    """A group a user belongs to, with the user's and the viewer's membership."""

    group: JsonObject
    membership: JsonObject
    viewer_membership: JsonObject | None


@dataclass(frozen=True)
class MemberProfile:
    """A group membership with the member's profile."""

    membership: JsonObject
    profile: JsonObject


@dataclass(frozen=True)
class SubscriptionProfile:
    """A subscription edge with the profile on its far end."""

    subscription: JsonObject
    profile: JsonObject


@dataclass(frozen=True)
class UpdateEntry:
    """An activity feed entry with its actor's profile and optional group."""

    update: JsonObject
    profile: JsonObject
    group: JsonObject | None


def shallow_merge(existing: JsonObject, update: JsonObject) -> JsonObject:
    """Overwrite the top-level keys of ``existing`` present in ``update``.

    Nested objects are replaced wholesale, never merged.
    """
    return {**existing, **update}


def require_object(value: Any) -> JsonObject:
    """Reject payloads that are not JSON objects.

    Raises:
        TypeError: If ``value`` is not a dict
    """
    if not isinstance(value, dict):
        raise TypeError(f"Payload must be a JSON object, got {type(value).__name__}")
    return value


@runtime_checkable
class DbAdapter(Protocol):
    """Protocol for store backends.

    Implementations:
        - InMemoryDbAdapter: reference behavior, used by tests
        - SqliteDbAdapter: embedded, single process
        - TursoDbAdapter: networked libSQL replica

    Error contract:
        - DocumentNotFoundError / LinkNotFoundError from update_* only
        - AlreadyExistsError from add_* on duplicates
        - Any other driver or network error propagates unmodified

    Example:
        >>> adapter = await create_db_adapter(StoreConfig.from_env())
        >>> await adapter.add_document("profiles", "ada", {"fullName": "Ada"})
        >>> await adapter.update_document("profiles", "ada", {"bio": "hi"})
        >>> await adapter.get_document("profiles", "ada")
        {'fullName': 'Ada', 'bio': 'hi'}
        >>> await adapter.close()
    """

    @abstractmethod
    async def get_document(self, collection: str, key: str) -> JsonObject | None:
        """Get a document, or None if no document exists at the key."""
        ...

    @abstractmethod
    async def add_document(self, collection: str, key: str, data: JsonObject) -> None:
        """Insert a new document.

        Raises:
            AlreadyExistsError: If a document already exists at the key
            TypeError: If data is not a dict
        """
        ...

    @abstractmethod
    async def update_document(self, collection: str, key: str, update: JsonObject) -> None:
        """Shallow-merge ``update`` into an existing document.

        Raises:
            DocumentNotFoundError: If no document exists at the key
        """
        ...

    @abstractmethod
    async def get_all_documents(self, collection: str) -> list[DocumentEntry]:
        """Get every document in a collection. Order is backend-defined."""
        ...

    @abstractmethod
    async def get_child_links(self, collection: str, parent_key: str) -> list[JsonObject]:
        """Get the payloads of all links under ``parent_key``."""
        ...

    @abstractmethod
    async def get_parent_links(self, collection: str, child_key: str) -> list[JsonObject]:
        """Get the payloads of all links pointing at ``child_key``."""
        ...

    @abstractmethod
    async def add_link(
        self,
        collection: str,
        parent_key: str,
        child_key: str,
        data: JsonObject,
    ) -> None:
        """Insert a new link.

        Raises:
            AlreadyExistsError: If the (parent_key, child_key) link exists
            TypeError: If data is not a dict
        """
        ...

    @abstractmethod
    async def update_link(
        self,
        collection: str,
        parent_key: str,
        child_key: str,
        update: JsonObject,
    ) -> None:
        """Shallow-merge ``update`` into an existing link.

        Raises:
            LinkNotFoundError: If the link does not exist
        """
        ...

    @abstractmethod
    async def delete_link(self, collection: str, parent_key: str, child_key: str) -> None:
        """Delete a link. Deleting a missing link is a no-op."""
        ...

    @abstractmethod
    async def get_user_groups_with_membership(
        self,
        username: str,
        viewer_username: str | None = None,
    ) -> list[GroupMembership]:
        """Groups ``username`` belongs to, with the viewer's own membership.

        Memberships whose group document is missing are dropped.
        """
        ...

    @abstractmethod
    async def get_group_members_with_profiles(self, group_name: str) -> list[MemberProfile]:
        """Members of a group with their profiles; members without one are dropped."""
        ...

    @abstractmethod
    async def get_subscriptions_with_profiles(self, username: str) -> list[SubscriptionProfile]:
        """Users ``username`` subscribes to, with their profiles."""
        ...

    @abstractmethod
    async def get_subscribers_with_profiles(self, username: str) -> list[SubscriptionProfile]:
        """Subscribers of ``username``, with their profiles."""
        ...

    @abstractmethod
    async def get_updates_with_profiles_and_groups(self, username: str) -> list[UpdateEntry]:
        """Feed entries of ``username`` with the actor's profile and the group, if any."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connections."""
        ...


async def create_db_adapter(config: StoreConfig) -> DbAdapter:
    """Factory function to create an adapter from configuration.

    The networked adapter's schema is ensured before returning so that a bad
    URL or token fails here, at startup.

    Args:
        config: Store configuration

    Returns:
        Appropriate DbAdapter implementation

    Raises:
        ValueError: If configuration is invalid or the backend is not supported
    """
    from ..config import StoreBackend
    from .memory import InMemoryDbAdapter
    from .sqlite import SqliteDbAdapter
    from .turso import TursoDbAdapter

    config.validate()

    if config.backend == StoreBackend.TURSO:
        adapter = TursoDbAdapter(config.turso)
        try:
            await adapter.ensure_schema()
        except Exception:
            await adapter.close()
            raise
        return adapter
    elif config.backend == StoreBackend.SQLITE:
        return SqliteDbAdapter(config.sqlite)
    elif config.backend == StoreBackend.MEMORY:
        return InMemoryDbAdapter()
    else:
        raise ValueError(f"Unsupported store backend: {config.backend}")


@asynccontextmanager
async def open_db_adapter(config: StoreConfig) -> AsyncIterator[DbAdapter]:
    """Create an adapter and close it when the block exits.

    Example:
        >>> async with open_db_adapter(config) as db:
        ...     await db.get_document("profiles", "ada")
    """
    adapter = await create_db_adapter(config)
    try:
        yield adapter
    finally:
        await adapter.close()
