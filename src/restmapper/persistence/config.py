"""Database configuration and driver factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from restmapper.persistence.dialects import Dialect, get_dialect

if TYPE_CHECKING:
    from restmapper.persistence.adapter import Driver


@dataclass
class DatabaseConfig:
    """Database connection configuration.

    Supports sqlite:/// and postgresql:// URL schemes.
    """

    url: str

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """Create config from environment variables.

        Resolution order:
        1. DATABASE_URL env var (standard)
        2. RESTMAPPER_DB_PATH env var (converted to sqlite:/// URL)
        3. Default: sqlite:///{base_path}/data/restmapper.db
        """
        url = os.environ.get("DATABASE_URL")
        if url:
            return cls(url=url)

        db_path = os.environ.get("RESTMAPPER_DB_PATH")
        if db_path:
            return cls(url=f"sqlite:///{db_path}")

        if base_path:
            return cls(url=f"sqlite:///{base_path / 'data' / 'restmapper.db'}")

        return cls(url="sqlite:///restmapper.db")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @property
    def sqlite_path(self) -> str:
        """Filesystem path of a sqlite:/// URL (":memory:" when empty)."""
        return self.url.replace("sqlite:///", "", 1) or ":memory:"

    @property
    def dialect(self) -> Dialect:
        if self.is_sqlite:
            return get_dialect("sqlite")
        if self.is_postgresql:
            return get_dialect("postgresql")
        raise ValueError(f"Unsupported database URL scheme: {self.url}")


def create_driver(config: DatabaseConfig) -> Driver:
    """Create a database driver based on the database URL scheme.

    Args:
        config: Database configuration with URL.

    Returns:
        A Driver instance (not yet connected).

    Raises:
        ValueError: For unsupported URL schemes.
    """
    if config.is_sqlite:
        from restmapper.persistence.sqlite import SQLiteDriver

        return SQLiteDriver(config.sqlite_path)

    if config.is_postgresql:
        from restmapper.persistence.postgresql import PostgreSQLDriver

        return PostgreSQLDriver(config.url)

    raise ValueError(f"Unsupported database URL scheme: {config.url}")
