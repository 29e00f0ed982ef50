"""
Configuration management for the Slowpost store.

All configuration is done via environment variables.
This module provides typed configuration classes with validation.

Invariants:
    - The networked replica backend never falls back to another backend
    - Missing replica settings fail at startup, not on first query
    - Secrets are never logged or exposed in error messages

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep STORE_BACKEND values stable; deployments depend on them
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


def _parse_interval(raw: str | None) -> float | None:
    """Parse a millisecond interval; blank or non-numeric values are ignored."""
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


class StoreBackend(Enum):
    """Supported store backends."""

    TURSO = "turso"
    SQLITE = "sqlite"
    MEMORY = "memory"


@dataclass(frozen=True)
class TursoConfig:
    """Networked libSQL replica configuration.

    Attributes:
        url: Database URL (libsql://, https://, http://)
        auth_token: Bearer token for the replica
        sync_interval_ms: Replica sync interval in milliseconds, or None
    """

    url: str | None = None
    auth_token: str | None = None
    sync_interval_ms: float | None = None

    @classmethod
    def from_env(cls) -> TursoConfig:
        """Load configuration from environment variables."""
        return cls(
            url=os.getenv("TURSO_URL") or None,
            auth_token=os.getenv("TURSO_AUTH_TOKEN") or None,
            sync_interval_ms=_parse_interval(os.getenv("TURSO_SYNC_INTERVAL_MS")),
        )


@dataclass(frozen=True)
class SqliteConfig:
    """Embedded SQLite configuration.

    Attributes:
        path: Database file path, or ":memory:"
        wal_mode: SQLite WAL mode enabled
        busy_timeout_ms: SQLite busy timeout in milliseconds
    """

    path: str = os.path.join("data", "slowpost.db")
    wal_mode: bool = True
    busy_timeout_ms: int = 5000

    @classmethod
    def from_env(cls) -> SqliteConfig:
        """Load configuration from environment variables."""
        return cls(
            path=os.getenv("SQLITE_PATH", os.path.join("data", "slowpost.db")),
            wal_mode=os.getenv("SQLITE_WAL_MODE", "true").lower() == "true",
            busy_timeout_ms=int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "5000")),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )


@dataclass
class StoreConfig:
    """Complete store configuration.

    Attributes:
        backend: Which backend the adapter factory builds
        turso: Replica configuration (if backend is TURSO)
        sqlite: Embedded configuration (if backend is SQLITE)
        observability: Logging configuration
    """

    backend: StoreBackend = StoreBackend.TURSO
    turso: TursoConfig = field(default_factory=TursoConfig)
    sqlite: SqliteConfig = field(default_factory=SqliteConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> StoreConfig:
        """Load complete configuration from environment variables.

        Returns:
            StoreConfig with all sections populated from environment.

        Raises:
            ValueError: If required configuration is missing or invalid.
        """
        backend_str = os.getenv("STORE_BACKEND", "turso").lower()
        try:
            backend = StoreBackend(backend_str)
        except ValueError:
            raise ValueError(
                f"Invalid STORE_BACKEND '{backend_str}'. Must be one of: turso, sqlite, memory"
            )

        config = cls(
            backend=backend,
            turso=TursoConfig.from_env(),
            sqlite=SqliteConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )

        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if self.backend == StoreBackend.TURSO:
            if not self.turso.url or not self.turso.auth_token:
                raise ValueError(
                    "TURSO_URL and TURSO_AUTH_TOKEN must be set to start the application. "
                    "Create a development database and define these variables in your environment."
                )
        elif self.backend == StoreBackend.SQLITE:
            if not self.sqlite.path:
                raise ValueError("SQLITE_PATH is required when STORE_BACKEND=sqlite")

        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Store configuration loaded",
            extra={
                "backend": self.backend.value,
                "turso_url": self.turso.url if self.backend == StoreBackend.TURSO else None,
                "turso_auth_token": "***" if self.turso.auth_token else None,
                "turso_sync_interval_ms": self.turso.sync_interval_ms,
                "sqlite_path": self.sqlite.path if self.backend == StoreBackend.SQLITE else None,
                "log_level": self.observability.log_level,
            },
        )
