"""SQL dialects: literal escaping, identifier quoting and SQL constants.

Each dialect carries a fixed allow-list of SQL constants and functions
(e.g. ``CURRENT_TIMESTAMP``) that may be written to a field unquoted. A value
is only treated as a constant when it matches one of these forms exactly,
ignoring case and surrounding whitespace.
"""

from dataclasses import dataclass
from typing import Any

_MYSQL_ESCAPES = {
    "\\": "\\\\",
    "\0": "\\0",
    "\n": "\\n",
    "\r": "\\r",
    "'": "\\'",
    '"': '\\"',
    "\x1a": "\\Z",
}


@dataclass(frozen=True)
class Dialect:
    """Escaping rules of one SQL dialect."""

    name: str
    constants: frozenset[str]
    identifier_quote: str = '"'
    backslash_escapes: bool = False
    supports_returning: bool = False
    true_literal: str = "1"
    false_literal: str = "0"
    # LIMIT value meaning "no limit", for an OFFSET without a page size
    unbounded_limit: str = "-1"

    def is_constant(self, value: Any) -> bool:
        return isinstance(value, str) and value.strip().upper() in self.constants

    def quote_identifier(self, name: str) -> str:
        q = self.identifier_quote
        return f"{q}{name.replace(q, q + q)}{q}"

    def escape_string(self, value: str) -> str:
        if self.backslash_escapes:
            return "".join(_MYSQL_ESCAPES.get(ch, ch) for ch in value)
        return value.replace("'", "''")

    def quote_literal(self, value: Any) -> str:
        """Render a Python value as an escaped, quoted SQL literal."""
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return self.true_literal if value else self.false_literal
        return f"'{self.escape_string(str(value))}'"


SQLITE = Dialect(
    name="sqlite",
    constants=frozenset({"CURRENT_TIMESTAMP", "CURRENT_DATE", "CURRENT_TIME", "NULL"}),
)

POSTGRESQL = Dialect(
    name="postgresql",
    constants=frozenset({
        "CURRENT_TIMESTAMP",
        "CURRENT_DATE",
        "CURRENT_TIME",
        "LOCALTIMESTAMP",
        "LOCALTIME",
        "NOW()",
        "NULL",
    }),
    supports_returning=True,
    true_literal="TRUE",
    false_literal="FALSE",
    unbounded_limit="ALL",
)

MYSQL = Dialect(
    name="mysql",
    constants=frozenset({
        "CURRENT_TIMESTAMP",
        "CURRENT_TIMESTAMP()",
        "CURRENT_DATE",
        "CURRENT_DATE()",
        "CURRENT_TIME",
        "CURRENT_TIME()",
        "NOW()",
        "SYSDATE()",
        "UTC_TIMESTAMP()",
        "UTC_DATE()",
        "UNIX_TIMESTAMP()",
        "NULL",
    }),
    identifier_quote="`",
    backslash_escapes=True,
    unbounded_limit="18446744073709551615",
)

DIALECTS: dict[str, Dialect] = {d.name: d for d in (SQLITE, POSTGRESQL, MYSQL)}


def get_dialect(name: str) -> Dialect:
    """Get a dialect by name.

    Raises:
        ValueError: For unknown dialects
    """
    if name not in DIALECTS:
        raise ValueError(
            f"Unknown SQL dialect '{name}'. Available: {', '.join(sorted(DIALECTS))}"
        )
    return DIALECTS[name]
