"""Driver Protocol: shared interface for all database drivers."""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from restmapper.persistence.dialects import Dialect


@dataclass
class QueryResult:
    """Raw outcome of one statement.

    Row-returning statements fill `rows` (physical column name -> value);
    writes report `last_insert_id`, `affected_rows` and a driver `info` line.
    """

    rows: list[dict[str, Any]] | None = None
    last_insert_id: Any = None
    affected_rows: int = 0
    info: str | None = None

    @property
    def returns_rows(self) -> bool:
        return self.rows is not None


@runtime_checkable
class Driver(Protocol):
    """Interface all database drivers must implement.

    A driver executes one final SQL string at a time and returns its raw
    result. Failures are raised as DriverError with the original exception
    chained as its cause.
    """

    dialect: Dialect

    # Raw connection handle. Type varies by driver (sqlite3.Connection,
    # psycopg.Connection, etc.).
    conn: Any

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def execute(self, sql: str) -> QueryResult: ...

    def quote_literal(self, value: Any) -> str: ...
