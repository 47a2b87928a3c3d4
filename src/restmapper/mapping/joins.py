"""Join resolver: fields and clauses contributed by related entities.

A related entity's fields are addressed from the flat parameter set with a
``{relation}_{field}`` prefix, pointing at ``{related_table}.{column}``:

    item joins category {id: id, title: title}
        category_id    -> category.id
        category_title -> category.title
"""

import logging
from typing import Any, Callable, Mapping

from restmapper.core.errors import BadRequestError
from restmapper.metadata.loader import EntityDefinition
from restmapper.query.params import MISSING, QueryShape

logger = logging.getLogger(__name__)

EntityLookup = Callable[[str], EntityDefinition]


def qualify(table: str, column: str) -> str:
    """Qualify a column with its table unless it already is."""
    return column if "." in column else f"{table}.{column}"


class JoinResolver:
    """Resolves the active joins of one model instance.

    Args:
        entity: The base entity definition
        shape: The request-derived query shape (holds the join selection)
        params: The request parameters
        lookup: Returns the definition of a related entity by name; raises
            NotFoundError when it cannot be loaded
    """

    def __init__(
        self,
        entity: EntityDefinition,
        shape: QueryShape,
        params: Mapping[str, Any],
        lookup: EntityLookup,
    ):
        self.entity = entity
        self.shape = shape
        self.params = params
        self.lookup = lookup
        self._combined: dict[str, str] | None = None

    def active_joins(self) -> list[str]:
        """Selected relations, in join catalog declaration order."""
        selected = set(self.shape.join)
        return [name for name in self.entity.joins if name in selected]

    def related_fields(self, relation: str) -> dict[str, tuple[str, str]]:
        """Prefixed name -> (related field name, physical reference)."""
        related = self.lookup(relation)
        return {
            f"{relation}_{field_name}": (field_name, qualify(related.main_table, column))
            for field_name, column in related.mapping.items()
        }

    def combined_mapping(self) -> dict[str, str]:
        """Prefixed external name -> physical reference for every active join.

        On a textual collision between relations, the relation declared
        first in the join catalog wins.
        """
        if self._combined is None:
            combined: dict[str, str] = {}
            for relation in self.active_joins():
                for prefixed, (_, physical) in self.related_fields(relation).items():
                    if prefixed in combined:
                        logger.debug(
                            "Entity '%s': '%s' from join '%s' shadowed by an earlier join",
                            self.entity.name, prefixed, relation,
                        )
                        continue
                    combined[prefixed] = physical
            self._combined = combined
        return self._combined

    def foreign_values(self, relations: list[str] | None = None) -> dict[str, Any]:
        """Values addressed to related entities, keyed by their own field names.

        Args:
            relations: Related entity names; defaults to the active joins

        Raises:
            BadRequestError: If a relation is not in the join catalog
        """
        if relations is None:
            relations = self.active_joins()

        unknown = [r for r in relations if r not in self.entity.joins]
        if unknown:
            raise BadRequestError(
                f"Unknown join(s) for '{self.entity.name}': {', '.join(unknown)}"
            )

        values: dict[str, Any] = {}
        for relation in relations:
            for prefixed, (field_name, _) in self.related_fields(relation).items():
                value = self.params.get(prefixed, MISSING)
                if value is not MISSING:
                    values.setdefault(field_name, value)
        return values

    def join_clauses(self) -> list[str]:
        """Join clause templates of the active joins, in declaration order."""
        return [self.entity.joins[name] for name in self.active_joins()]
