"""Field mapper: external (request/model) names <-> physical columns."""

from typing import Any, Collection, Mapping

from restmapper.metadata.loader import EntityDefinition
from restmapper.query.params import MISSING


class FieldMapper:
    """Bidirectional, pass-through field name translation for one entity.

    Unmapped names are returned unchanged in both directions. When two
    external names map to the same physical reference, the reverse lookup
    resolves to the first one declared.
    """

    def __init__(self, entity: EntityDefinition, params: Mapping[str, Any] | None = None):
        self.entity = entity
        self.mapping = entity.mapping
        self.params = params if params is not None else {}
        self._reverse: dict[str, str] = {}
        self._columns: dict[str, str] = {}
        for external, physical in self.mapping.items():
            self._reverse.setdefault(physical, external)
            # Result rows carry bare column names, even for "table.column" references
            self._columns.setdefault(physical.rsplit(".", 1)[-1], external)

    def to_physical(self, external_name: str) -> str:
        return self.mapping.get(external_name, external_name)

    def to_external(self, physical_reference: str) -> str:
        return self._reverse.get(physical_reference, physical_reference)

    def is_primary(self, external_name: str) -> bool:
        return external_name in self.entity.primary

    def values_for_write(self, exclude_primary: bool = False) -> dict[str, Any]:
        """Mapped parameter values keyed by physical reference.

        Only fields present in the mapping are kept, in declaration order.
        With `exclude_primary`, primary fields are dropped (UPDATE identifies
        rows through its WHERE clause instead).
        """
        values: dict[str, Any] = {}
        for external, physical in self.mapping.items():
            value = self.params.get(external, MISSING)
            if value is MISSING:
                continue
            if exclude_primary and self.is_primary(external):
                continue
            values.setdefault(physical, value)
        return values

    def shape_row(
        self, row: Mapping[str, Any], aliased: Collection[str] = ()
    ) -> dict[str, Any]:
        """Rename a result row's physical keys to external names.

        Keys in `aliased` were already renamed by the SELECT list and are
        kept as they are.
        """
        shaped: dict[str, Any] = {}
        for key, value in row.items():
            if key in aliased:
                external = key
            else:
                external = self._reverse.get(key) or self._columns.get(key, key)
            shaped.setdefault(external, value)
        return shaped
