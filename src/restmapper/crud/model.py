"""Model: per-request CRUD dispatcher for one entity.

A model instance is created for a single request from its parameter set,
dispatches exactly one verb and is then discarded:

    model = registry.load("item", {"name": "foo"})
    rows = model.get()

Each dispatch goes through the same states:

    UNINITIALIZED -> VALIDATED -> EXECUTED -> SHAPED

A driver or shaping error moves the model to FAILED instead; like SHAPED it
is terminal.

Required fields and validation rules are checked before any SQL is built,
so a rejected request never reaches the driver.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from restmapper.core.errors import BadRequestError, NotFoundError, NotImplementedVerbError
from restmapper.mapping.fields import FieldMapper
from restmapper.mapping.joins import JoinResolver
from restmapper.metadata.loader import EntityDefinition
from restmapper.persistence.adapter import Driver, QueryResult
from restmapper.persistence.dialects import Dialect
from restmapper.query.builder import ClauseBuilder
from restmapper.query.params import ParameterSet, QueryShape
from restmapper.validation.store import ValidatorStore
from restmapper.validation.types import ValidationError

if TYPE_CHECKING:
    from restmapper.crud.registry import ModelRegistry

logger = logging.getLogger(__name__)

# Verbs whose supplied fields are validated in addition to the required ones
WRITE_VERBS = ("post", "put")


class DispatchState(Enum):
    """Progress of a model's single dispatch."""

    UNINITIALIZED = "uninitialized"
    VALIDATED = "validated"
    EXECUTED = "executed"
    SHAPED = "shaped"
    FAILED = "failed"


@dataclass
class WriteResult:
    """Write metadata returned by post (update) and put (insert)."""

    affected_rows: int
    last_insert_id: Any = None
    info: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "affectedRows": self.affected_rows,
            "lastInsertId": self.last_insert_id,
            "info": self.info,
        }


class Model:
    """CRUD dispatcher over one entity definition and one parameter set.

    Subclasses may override any verb; a verb that is neither overridden nor
    enabled in the entity's `verbs` raises NotImplementedVerbError.

    Args:
        entity: The entity definition
        params: Request parameters (strings or lists of strings)
        driver: Database driver; required to execute, optional for `statement()`
        dialect: SQL dialect; defaults to the driver's
        registry: Resolves related entities for joins and `related()`

    Raises:
        BadRequestError: On malformed join/sort/group/projection overrides
        NotFoundError: If a selected join names an unknown entity
    """

    def __init__(
        self,
        entity: EntityDefinition,
        params: Mapping[str, Any] | None = None,
        driver: Driver | None = None,
        dialect: Dialect | None = None,
        registry: ModelRegistry | None = None,
    ):
        if dialect is None:
            if driver is None:
                raise ValueError("A driver or a dialect is required")
            dialect = driver.dialect

        self.entity = entity
        self.name = entity.name
        self.driver = driver
        self.dialect = dialect
        self.registry = registry
        self.state = DispatchState.UNINITIALIZED

        self.params = ParameterSet(params).without_markup(
            list(entity.mapping), entity.allow_html
        )
        self.shape = QueryShape.from_params(entity, self.params)
        self.mapper = FieldMapper(entity, self.params)
        self.joins = JoinResolver(entity, self.shape, self.params, self._definition)
        self.builder = ClauseBuilder(
            entity,
            self.mapper,
            self.joins,
            self.shape,
            self.params,
            dialect,
            quote=driver.quote_literal if driver is not None else None,
        )
        self.shape.check_fields(set(self.builder.all_mapping()))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} {self.state.value}>"

    def _definition(self, name: str) -> EntityDefinition:
        if self.registry is None:
            raise NotFoundError(f"Entity '{name}' not found")
        return self.registry.definition(name)

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    def get(self) -> list[dict[str, Any]]:
        """SELECT matching rows, keyed by external field names."""
        return self._dispatch("get")

    def post(self) -> WriteResult:
        """UPDATE the row identified by the primary fields."""
        return self._dispatch("post")

    def put(self) -> WriteResult:
        """INSERT a row; reports the generated identity."""
        return self._dispatch("put")

    def delete(self) -> int:
        """DELETE the row identified by the primary fields; returns the affected count."""
        return self._dispatch("delete")

    def count(self) -> int:
        """COUNT rows matching the same filters and joins as get()."""
        return self._dispatch("count")

    # ------------------------------------------------------------------
    # Validation gate
    # ------------------------------------------------------------------

    def invalids(self, fields: list[str] | None = None) -> dict[str, list[ValidationError]]:
        """Fields currently failing validation (all declared fields if none given)."""
        return ValidatorStore(self.entity.validation, self.params).invalids(fields)

    def validation_fields(self, verb: str) -> list[str]:
        fields = self.entity.required_for(verb)
        if verb in WRITE_VERBS:
            fields.extend(
                name for name in self.entity.validation
                if name in self.params and name not in fields
            )
        return fields

    def check(self, verb: str) -> None:
        """Run the validation gate for a verb.

        Raises:
            BadRequestError: Naming missing required or invalid fields
        """
        missing = [f for f in self.entity.required_for(verb) if not self.params.has(f)]
        if missing:
            logger.info("%s.%s rejected: missing %s", self.name, verb, missing)
            raise BadRequestError(
                f"Missing required parameter(s): {', '.join(missing)}", fields=missing
            )

        invalid = self.invalids(self.validation_fields(verb))
        if invalid:
            logger.info("%s.%s rejected: invalid %s", self.name, verb, list(invalid))
            raise BadRequestError(
                f"Invalid parameter(s): {', '.join(invalid)}",
                fields=list(invalid),
                details={f: [e.message for e in errors] for f, errors in invalid.items()},
            )

        self.state = DispatchState.VALIDATED

    # ------------------------------------------------------------------
    # Statement construction
    # ------------------------------------------------------------------

    def statement(self, verb: str) -> str:
        """Validate and return the SQL a verb would execute, without executing it."""
        if verb not in self.entity.verbs:
            raise NotImplementedVerbError(f"Not implemented: {self.name}.{verb}")
        self.check(verb)
        return self._build(verb)

    def _build(self, verb: str) -> str:
        if verb == "get":
            return self.builder.select_statement()
        if verb == "count":
            return self.builder.count_statement()
        if verb == "put":
            values = self.mapper.values_for_write(exclude_primary=False)
            if not values:
                raise BadRequestError(f"No fields to insert into '{self.name}'")
            return self.builder.insert_statement(values)

        # post and delete identify rows by their primary fields only
        if not self.builder.where_clause(primary_only=True):
            raise BadRequestError(
                f"Missing primary key for {self.name}.{verb}",
                fields=self.entity.primary,
            )
        if verb == "post":
            values = self.mapper.values_for_write(exclude_primary=True)
            if not values:
                raise BadRequestError(f"No fields to update in '{self.name}'")
            return self.builder.update_statement(values)
        if verb == "delete":
            return self.builder.delete_statement()
        raise NotImplementedVerbError(f"Not implemented: {self.name}.{verb}")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(self, verb: str) -> Any:
        if self.state in (DispatchState.EXECUTED, DispatchState.SHAPED, DispatchState.FAILED):
            raise RuntimeError(f"{self!r} has already dispatched a verb")
        sql = self.statement(verb)
        if self.driver is None:
            raise RuntimeError("No driver configured")
        logger.debug("%s.%s: %s", self.name, verb, sql)
        try:
            result = self.driver.execute(sql)
            self.state = DispatchState.EXECUTED
            shaped = self._shape(verb, result)
        except Exception:
            self.state = DispatchState.FAILED
            raise
        self.state = DispatchState.SHAPED
        return shaped

    def _shape(self, verb: str, result: QueryResult) -> Any:
        if verb == "get":
            aliased = self.builder.aliased_names()
            return [self.mapper.shape_row(row, aliased) for row in result.rows or []]
        if verb == "count":
            if not result.rows:
                return 0
            return int(next(iter(result.rows[0].values())))
        if verb == "delete":
            return result.affected_rows

        last_insert_id = result.last_insert_id if verb == "put" else None
        if verb == "put" and result.rows:
            # INSERT ... RETURNING reports the generated identity as a row
            last_insert_id = next(iter(result.rows[0].values()))
        return WriteResult(
            affected_rows=result.affected_rows,
            last_insert_id=last_insert_id,
            info=result.info,
        )

    # ------------------------------------------------------------------
    # Related entities
    # ------------------------------------------------------------------

    def foreign_values(self, relations: list[str] | None = None) -> dict[str, Any]:
        return self.joins.foreign_values(relations)

    def related(self, relation: str) -> Model:
        """Load the related entity's model with the values addressed to it.

        `item` params ``{"category_title": "Books"}`` give a `category`
        model with params ``{"title": "Books"}``.
        """
        if self.registry is None:
            raise NotFoundError(f"Entity '{relation}' not found")
        values = self.joins.foreign_values([relation])
        return self.registry.load(relation, values)
