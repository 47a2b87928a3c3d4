"""Clause builder: SQL fragments and statements for one model instance.

Fragments are returned without their leading keyword (``where_clause()``
returns ``item_name = 'foo'``, not ``WHERE item_name = 'foo'``); the
``*_statement()`` methods assemble complete statements.

All values reach SQL through `escape()`. A value is written unquoted only
when the dialect recognises it as an SQL constant and the field is allowed
to carry one.
"""

import re
from typing import Any, Callable

from restmapper.mapping.fields import FieldMapper
from restmapper.mapping.joins import JoinResolver, qualify
from restmapper.metadata.loader import EntityDefinition
from restmapper.persistence.dialects import Dialect
from restmapper.query.params import MISSING, ParameterSet, QueryShape

WILDCARD = "%"
IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def column_name(physical: str) -> str:
    """Bare column of a physical reference ("item.name" -> "name")."""
    return physical.rsplit(".", 1)[-1]


class ClauseBuilder:
    """Builds SQL from an entity's mapping, active joins, parameters and shape."""

    def __init__(
        self,
        entity: EntityDefinition,
        mapper: FieldMapper,
        joins: JoinResolver,
        shape: QueryShape,
        params: ParameterSet,
        dialect: Dialect,
        quote: Callable[[Any], str] | None = None,
    ):
        self.entity = entity
        self.mapper = mapper
        self.joins = joins
        self.shape = shape
        self.params = params
        self.dialect = dialect
        # Drivers quote against their live connection; dry runs use the dialect.
        self.quote = quote or dialect.quote_literal

    # ------------------------------------------------------------------
    # Field resolution
    # ------------------------------------------------------------------

    def all_mapping(self) -> dict[str, str]:
        """The entity's own mapping followed by the joined fields.

        The entity's own names take precedence over prefixed joined names.
        While joins are active, the entity's bare column names are qualified
        with its main table so they cannot become ambiguous.
        """
        joined = self.joins.combined_mapping()
        if not joined:
            return dict(self.entity.mapping)

        table = self.entity.main_table
        combined = {
            name: qualify(table, physical) if IDENTIFIER.match(physical) else physical
            for name, physical in self.entity.mapping.items()
        }
        for name, physical in joined.items():
            combined.setdefault(name, physical)
        return combined

    def physical(self, name: str) -> str:
        return self.all_mapping().get(name, self.mapper.to_physical(name))

    # ------------------------------------------------------------------
    # Escaping
    # ------------------------------------------------------------------

    def accepts_constant(self, field: str | None) -> bool:
        if field is None:
            return False
        return not self.entity.constants or field in self.entity.constants

    def escape(self, value: Any, field: str | None = None) -> str:
        """Return the value escaped and quoted.

        If `field` may carry SQL constants and the value is one of the
        dialect's recognised constants, it is returned unmodified.
        """
        if self.accepts_constant(field) and self.dialect.is_constant(value):
            return value
        return self.quote(value)

    # ------------------------------------------------------------------
    # Clauses
    # ------------------------------------------------------------------

    def select_clause(self) -> str:
        parts: list[str] = []
        for name in self.shape.returns:
            if name == "*":
                parts.append(self._star())
            else:
                parts.append(f"{self.physical(name)} AS {self.dialect.quote_identifier(name)}")
        return ", ".join(parts) or "*"

    def _star(self) -> str:
        combined = self.joins.combined_mapping()
        if not combined:
            return "*"
        # Joined columns are aliased to their prefixed names so rows stay flat;
        # a prefixed name equal to one of the entity's own fields is skipped
        parts = [f"{self.entity.main_table}.*"]
        parts.extend(
            f"{physical} AS {self.dialect.quote_identifier(name)}"
            for name, physical in combined.items()
            if name not in self.entity.mapping
        )
        return ", ".join(parts)

    def aliased_names(self) -> set[str]:
        """Result keys that the SELECT list already aliases to external names."""
        aliased = {name for name in self.shape.returns if name != "*"}
        if "*" in self.shape.returns:
            aliased.update(
                name for name in self.joins.combined_mapping()
                if name not in self.entity.mapping
            )
        return aliased

    def from_clause(self) -> str:
        return self.entity.table

    def join_clause(self) -> str:
        return " ".join(self.joins.join_clauses())

    def where_clause(self, primary_only: bool = False) -> str:
        """ANDed predicates for every mapped field present in the parameters.

        Args:
            primary_only: Restrict to the entity's primary fields
        """
        if primary_only:
            fields = [(name, self.entity.mapping[name]) for name in self.entity.primary]
        else:
            fields = list(self.all_mapping().items())

        predicates: list[str] = []
        for name, physical in fields:
            value = self.params.lookup(name)
            if value is MISSING:
                continue
            predicates.append(self.predicate(name, physical, value))
        return " AND ".join(predicates)

    def predicate(self, name: str, physical: str, value: Any) -> str:
        """Equality, list membership, NULL test or wildcard pattern match."""
        if isinstance(value, (list, tuple)):
            if not value:
                return "1 = 0"
            items = ", ".join(self.escape(v, name) for v in value)
            return f"{physical} IN ({items})"
        literal = self.escape(value, name)
        if value is None or literal.strip().upper() == "NULL":
            return f"{physical} IS NULL"
        if isinstance(value, str) and WILDCARD in value:
            return f"{physical} LIKE {literal}"
        return f"{physical} = {literal}"

    def order_clause(self) -> str:
        direction = f" {self.shape.order}" if self.shape.order else ""
        return ", ".join(f"{self.physical(name)}{direction}" for name in self.shape.order_by)

    def group_clause(self) -> str:
        return ", ".join(self.physical(name) for name in self.shape.group_by)

    def limit_clause(self) -> str:
        limit, offset = self.shape.limit, self.shape.offset
        if limit is None and not offset:
            return ""
        sql = f"LIMIT {limit if limit is not None else self.dialect.unbounded_limit}"
        if offset:
            sql += f" OFFSET {offset}"
        return sql

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _assemble(self, *parts: tuple[str, str]) -> str:
        return " ".join(f"{keyword}{fragment}" for keyword, fragment in parts if fragment)

    def select_statement(self) -> str:
        return self._assemble(
            ("SELECT ", self.select_clause()),
            ("FROM ", self.from_clause()),
            ("", self.join_clause()),
            ("WHERE ", self.where_clause()),
            ("GROUP BY ", self.group_clause()),
            ("ORDER BY ", self.order_clause()),
            ("", self.limit_clause()),
        )

    def count_statement(self) -> str:
        return self._assemble(
            ("SELECT ", "COUNT(*) AS count"),
            ("FROM ", self.from_clause()),
            ("", self.join_clause()),
            ("WHERE ", self.where_clause()),
        )

    def _assignments(self, values: dict[str, Any]) -> list[tuple[str, str]]:
        return [
            (column_name(physical), self.escape(value, self.mapper.to_external(physical)))
            for physical, value in values.items()
        ]

    def insert_statement(self, values: dict[str, Any]) -> str:
        """INSERT of physical reference -> raw value into the main table."""
        assignments = self._assignments(values)
        columns = ", ".join(column for column, _ in assignments)
        literals = ", ".join(literal for _, literal in assignments)
        sql = f"INSERT INTO {self.entity.main_table} ({columns}) VALUES ({literals})"
        if self.dialect.supports_returning:
            returning = ", ".join(
                column_name(self.entity.mapping[name]) for name in self.entity.primary
            )
            sql += f" RETURNING {returning}"
        return sql

    def update_statement(self, values: dict[str, Any]) -> str:
        """UPDATE of the main table, identified by the primary fields."""
        sets = ", ".join(f"{column} = {literal}" for column, literal in self._assignments(values))
        return self._assemble(
            ("UPDATE ", self.entity.main_table),
            ("SET ", sets),
            ("WHERE ", self.where_clause(primary_only=True)),
        )

    def delete_statement(self) -> str:
        """DELETE from the main table, identified by the primary fields."""
        return self._assemble(
            ("DELETE FROM ", self.entity.main_table),
            ("WHERE ", self.where_clause(primary_only=True)),
        )
