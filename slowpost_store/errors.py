"""
Error types for the Slowpost store.

This module defines every exception the store layer raises itself:
- StoreError: Base exception
- NotFoundError: Update target does not exist (DocumentNotFoundError, LinkNotFoundError)
- AlreadyExistsError: Insert collided with an existing document or link

Invariants:
    - A missing document on read is never an error (get_document returns None)
    - NotFound messages name the collection and every key of the record
    - Driver and network faults other than duplicate inserts are not wrapped

How to change safely:
    - Callers match on these classes and on ``code``; keep both stable
    - Every backend must raise the same class for the same condition
"""

from __future__ import annotations

from typing import Any


class StoreError(Exception):
    """Base exception for all store errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "STORE_ERROR"
        self.details = details or {}


class NotFoundError(StoreError):
    """Update target not found.

    Raised by update_document and update_link only. Reads report absence
    with None or an empty list instead.
    """

    def __init__(self, message: str, collection: str, keys: tuple[str, ...]) -> None:
        super().__init__(
            message,
            code="NOT_FOUND",
            details={"collection": collection, "keys": list(keys)},
        )
        self.collection = collection
        self.keys = keys


class DocumentNotFoundError(NotFoundError):
    """No document stored at (collection, key)."""

    def __init__(self, collection: str, key: str) -> None:
        super().__init__(f"Document not found: {collection}/{key}", collection, (key,))
        self.key = key


class LinkNotFoundError(NotFoundError):
    """No link stored at (collection, parent_key, child_key)."""

    def __init__(self, collection: str, parent_key: str, child_key: str) -> None:
        super().__init__(
            f"Link not found: {collection}/{parent_key}/{child_key}",
            collection,
            (parent_key, child_key),
        )
        self.parent_key = parent_key
        self.child_key = child_key


class AlreadyExistsError(StoreError):
    """Insert collided with an existing record.

    Raised by add_document and add_link on every backend. The SQL backends
    raise it from the engine's primary-key violation, chained to the
    original driver error.
    """

    def __init__(self, collection: str, keys: tuple[str, ...]) -> None:
        kind = "Document" if len(keys) == 1 else "Link"
        super().__init__(
            f"{kind} already exists: {collection}/{'/'.join(keys)}",
            code="ALREADY_EXISTS",
            details={"collection": collection, "keys": list(keys)},
        )
        self.collection = collection
        self.keys = keys
