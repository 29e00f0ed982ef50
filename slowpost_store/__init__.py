"""
Slowpost Store - document/link persistence for the Slowpost application.

Every feature of the application (profiles, groups, memberships,
subscriptions, activity feeds) is stored through two schema-less
primitives:
- Documents: JSON objects keyed by (collection, key)
- Links: JSON objects keyed by (collection, parent_key, child_key),
  queryable from either endpoint

Architecture:
    ┌──────────────┐     ┌────────────────────┐
    │   Handlers   │────▶│ SlowpostRepository │  typed accessors (optional)
    └──────┬───────┘     └─────────┬──────────┘
           │                       │
           ▼                       ▼
    ┌──────────────────────────────────────────┐
    │           DbAdapter (protocol)           │
    └──────┬──────────────┬──────────────┬─────┘
           │              │              │
           ▼              ▼              ▼
     ┌──────────┐   ┌──────────┐   ┌──────────┐
     │  Turso   │   │  SQLite  │   │ In-memory│
     │ (libSQL) │   │(embedded)│   │  (tests) │
     └──────────┘   └──────────┘   └──────────┘

Invariants:
    - Reading a missing document returns None; updating one raises NotFound
    - Updates are shallow merges and are not atomic
    - Multi-record operations are not transactional
    - The adapter is built once at startup and passed explicitly

How to change safely:
    - The two-table schema is a wire contract; see adapters/sql.py
    - Backend behavior changes must pass the cross-backend contract tests
"""

from ._version import __version__
from .adapters import (
    DbAdapter,
    DocumentEntry,
    GroupMembership,
    InMemoryDbAdapter,
    MemberProfile,
    SqliteDbAdapter,
    SubscriptionProfile,
    TursoDbAdapter,
    UpdateEntry,
    create_db_adapter,
    open_db_adapter,
)
from .config import StoreBackend, StoreConfig
from .errors import (
    AlreadyExistsError,
    DocumentNotFoundError,
    LinkNotFoundError,
    NotFoundError,
    StoreError,
)
from .kinds import Collection
from .repository import SlowpostRepository

__all__ = [
    "__version__",
    # Adapters
    "DbAdapter",
    "InMemoryDbAdapter",
    "SqliteDbAdapter",
    "TursoDbAdapter",
    "create_db_adapter",
    "open_db_adapter",
    # Result types
    "DocumentEntry",
    "GroupMembership",
    "MemberProfile",
    "SubscriptionProfile",
    "UpdateEntry",
    # Configuration
    "StoreBackend",
    "StoreConfig",
    # Errors
    "StoreError",
    "NotFoundError",
    "DocumentNotFoundError",
    "LinkNotFoundError",
    "AlreadyExistsError",
    # Typed access
    "Collection",
    "SlowpostRepository",
]
