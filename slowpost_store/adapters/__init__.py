"""
Store adapters for Slowpost.

This package provides a pluggable backend interface supporting:
- libSQL/Turso over HTTP (production)
- Embedded SQLite (single-process deployments)
- In-memory (for testing)

Every backend stores the same two primitives over the same two-table
schema, so data written by one is readable by tooling built for another.

Invariants:
    - All backends have identical observable behavior
    - The adapter is constructed once and passed explicitly to its callers
    - close() is called exactly once, at shutdown

How to change safely:
    - New backends must implement the DbAdapter protocol
    - Add the backend to the contract test parametrization
"""

from .base import (
    DbAdapter,
    DocumentEntry,
    GroupMembership,
    MemberProfile,
    SubscriptionProfile,
    UpdateEntry,
    create_db_adapter,
    open_db_adapter,
    require_object,
    shallow_merge,
)
from .memory import InMemoryDbAdapter
from .sqlite import SqliteDbAdapter
from .turso import TursoDbAdapter

__all__ = [
    # Protocol and types
    "DbAdapter",
    "DocumentEntry",
    "GroupMembership",
    "MemberProfile",
    "SubscriptionProfile",
    "UpdateEntry",
    "require_object",
    "shallow_merge",
    # Factory
    "create_db_adapter",
    "open_db_adapter",
    # Implementations
    "InMemoryDbAdapter",
    "SqliteDbAdapter",
    "TursoDbAdapter",
]
