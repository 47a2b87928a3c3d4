"""PostgreSQL database driver.

Uses psycopg v3 (psycopg[binary]>=3.1.0). The connection runs in autocommit
mode: statements are issued one at a time and transaction handling is left
to the caller. Rows are returned through the dict_row factory.

Statements are sent without parameters, so psycopg does not interpret ``%``
in LIKE patterns as placeholders. Literals embedded in them are quoted by
``psycopg.sql.Literal`` through `quote_literal()`.
"""

from __future__ import annotations

import logging
from typing import Any

from restmapper.core.errors import DriverError
from restmapper.persistence.adapter import QueryResult
from restmapper.persistence.dialects import POSTGRESQL

logger = logging.getLogger(__name__)


class PostgreSQLDriver:
    """PostgreSQL driver using psycopg v3."""

    dialect = POSTGRESQL

    def __init__(self, url: str):
        # Accept both postgresql:// and postgresql+psycopg:// URLs.
        self.url = url.replace("postgresql+psycopg://", "postgresql://")
        self.conn: Any = None

    def connect(self) -> None:
        """Establish database connection."""
        import psycopg
        from psycopg.rows import dict_row

        self.conn = psycopg.connect(self.url, row_factory=dict_row, autocommit=True)

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def quote_literal(self, value: Any) -> str:
        """Render a value as an SQL literal using libpq's escaping.

        psycopg escapes against the live connection, so the result honours
        the server's ``standard_conforming_strings`` setting. Values are
        sent as text so PostgreSQL infers their type from the column. Before
        ``connect()`` the dialect's own quoting is used.
        """
        if self.conn is None or value is None or isinstance(value, bool):
            return self.dialect.quote_literal(value)

        from psycopg import sql

        return sql.Literal(str(value)).as_string(self.conn)

    def execute(self, sql: str) -> QueryResult:
        """Execute a statement and return its rows or write metadata.

        INSERT ... RETURNING statements come back as rows; the caller reads
        the generated identity from them.
        """
        import psycopg

        if not self.conn:
            raise RuntimeError("Database not connected")

        logger.debug("postgresql: %s", sql)
        try:
            cursor = self.conn.execute(sql)
            rows = [dict(row) for row in cursor.fetchall()] if cursor.description else None
        except psycopg.Error as exc:
            logger.error("postgresql statement failed: %s (%s)", exc, sql)
            raise DriverError(f"Database error: {exc}") from exc

        return QueryResult(
            rows=rows,
            affected_rows=max(cursor.rowcount, 0),
            info=cursor.statusmessage,
        )
