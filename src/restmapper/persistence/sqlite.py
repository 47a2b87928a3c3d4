"""SQLite database driver."""

import logging
import sqlite3
from pathlib import Path
from typing import Any

from restmapper.core.errors import DriverError
from restmapper.persistence.adapter import QueryResult
from restmapper.persistence.dialects import SQLITE

logger = logging.getLogger(__name__)


class SQLiteDriver:
    """Simple SQLite driver executing one statement at a time."""

    dialect = SQLITE

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = str(db_path)
        self.conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Establish database connection."""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def quote_literal(self, value: Any) -> str:
        """SQLite strings have no backslash escapes; doubling quotes is enough."""
        return self.dialect.quote_literal(value)

    def execute(self, sql: str) -> QueryResult:
        """Execute a statement and return its rows or write metadata."""
        if not self.conn:
            raise RuntimeError("Database not connected")

        logger.debug("sqlite: %s", sql)
        try:
            cursor = self.conn.execute(sql)
            if cursor.description is not None:
                rows = [dict(row) for row in cursor.fetchall()]
                return QueryResult(rows=rows, affected_rows=len(rows))
            self.conn.commit()
        except sqlite3.Error as exc:
            logger.error("sqlite statement failed: %s (%s)", exc, sql)
            if self.conn.in_transaction:
                self.conn.rollback()
            raise DriverError(f"Database error: {exc}") from exc

        return QueryResult(
            last_insert_id=cursor.lastrowid,
            affected_rows=cursor.rowcount,
            info=f"{cursor.rowcount} row(s) affected",
        )
