"""Load and resolve entity definitions from YAML files."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

VERBS = ("get", "post", "put", "delete", "count")
ORDER_DIRECTIONS = ("ASC", "DESC")


@dataclass(frozen=True)
class RuleSpec:
    """A single validation rule: a name plus optional arguments."""

    name: str
    args: tuple[Any, ...] = ()


@dataclass
class QueryDefaults:
    """Declared defaults for the request-derived query shape."""

    join: list[str] = field(default_factory=list)
    order_by: list[str] = field(default_factory=list)
    order: str | None = None
    group_by: list[str] = field(default_factory=list)
    returns: list[str] = field(default_factory=lambda: ["*"])
    limit: int | None = None
    offset: int | None = None


@dataclass
class EntityDefinition:
    """Immutable description of one modeled table.

    Attributes:
        name: Registry key (e.g. "item")
        table: Physical table expression; may list secondary tables
            separated by commas, the first one is the main table
        mapping: Ordered external field name -> physical column reference
        primary: External field names forming the row identity
        constants: Fields allowed to carry an SQL constant; empty means all
        allow_html: Fields whose values keep their markup
        required: Verb -> external field names that must be supplied
        validation: External field name -> ordered rule list
        joins: Related entity name -> join clause, in declaration order
        verbs: Enabled verbs; others answer "not implemented"
        defaults: Declared query shape defaults
    """

    name: str
    table: str
    mapping: dict[str, str]
    primary: list[str] = field(default_factory=lambda: ["id"])
    constants: list[str] = field(default_factory=list)
    allow_html: list[str] = field(default_factory=list)
    required: dict[str, list[str]] = field(default_factory=dict)
    validation: dict[str, list[RuleSpec]] = field(default_factory=dict)
    joins: dict[str, str] = field(default_factory=dict)
    verbs: list[str] = field(default_factory=lambda: list(VERBS))
    defaults: QueryDefaults = field(default_factory=QueryDefaults)

    @property
    def main_table(self) -> str:
        """The table affected by writes (first table of `table`)."""
        return self.table.split(",")[0].strip()

    def required_for(self, verb: str) -> list[str]:
        return list(self.required.get(verb, []))


def _listify(value: Any) -> list[str]:
    """Normalize a scalar, comma-separated string or list into a list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(v) for v in value]


def parse_rules(data: list | None) -> list[RuleSpec]:
    """Parse a YAML rule list.

    Each item is either a bare rule name or a single-key mapping of the rule
    name to its argument(s):

        - mandatory
        - string: [2, 50]
        - regex: "^[a-z]+$"
    """
    rules: list[RuleSpec] = []
    for item in data or []:
        if isinstance(item, str):
            rules.append(RuleSpec(item))
        elif isinstance(item, dict) and len(item) == 1:
            name, args = next(iter(item.items()))
            if args is None:
                args = ()
            elif not isinstance(args, (list, tuple)):
                args = (args,)
            rules.append(RuleSpec(str(name), tuple(args)))
        else:
            raise ValueError(f"Invalid validation rule: {item!r}")
    return rules


def check_definition(entity: EntityDefinition) -> None:
    """Check the invariants of an entity definition.

    Raises:
        ValueError: If the definition is inconsistent
    """
    name = entity.name
    mapped = set(entity.mapping)

    if not entity.mapping:
        raise ValueError(f"Entity '{name}' has an empty mapping")
    if not entity.primary:
        raise ValueError(f"Entity '{name}' has no primary fields")

    for label, names in (
        ("primary", entity.primary),
        ("constants", entity.constants),
        ("allowHtml", entity.allow_html),
    ):
        unknown = [n for n in names if n not in mapped]
        if unknown:
            raise ValueError(
                f"Entity '{name}' {label} references unmapped field(s): "
                f"{', '.join(unknown)}"
            )

    for verb, names in entity.required.items():
        if verb not in VERBS:
            raise ValueError(f"Entity '{name}' declares required fields for unknown verb '{verb}'")
        unknown = [n for n in names if n not in mapped]
        if unknown:
            raise ValueError(
                f"Entity '{name}' requires unmapped field(s) for {verb}: {', '.join(unknown)}"
            )

    unknown_verbs = [v for v in entity.verbs if v not in VERBS]
    if unknown_verbs:
        raise ValueError(f"Entity '{name}' enables unknown verb(s): {', '.join(unknown_verbs)}")

    order = entity.defaults.order
    if order is not None and order.upper() not in ORDER_DIRECTIONS:
        raise ValueError(f"Entity '{name}' default order '{order}' must be ASC or DESC")

    unknown_joins = [j for j in entity.defaults.join if j not in entity.joins]
    if unknown_joins:
        raise ValueError(
            f"Entity '{name}' default join(s) not in join catalog: {', '.join(unknown_joins)}"
        )

    # Duplicate physical references make reverse lookup ambiguous
    seen: dict[str, str] = {}
    for external, physical in entity.mapping.items():
        if physical in seen:
            logger.warning(
                "Entity '%s': '%s' and '%s' both map to '%s'; reverse lookup resolves to '%s'",
                name, seen[physical], external, physical, seen[physical],
            )
        else:
            seen[physical] = external


class MetadataLoader:
    """Loads entity definitions from YAML files."""

    def __init__(self, metadata_path: Path | None = None):
        self.metadata_path = metadata_path
        self.entities: dict[str, EntityDefinition] = {}

    def load_all(self) -> None:
        """Load all entity definitions under `<metadata_path>/entities`."""
        if self.metadata_path is None:
            return
        entities_path = self.metadata_path / "entities"
        if not entities_path.exists():
            return

        for yaml_file in sorted(entities_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
            if data and "entity" in data:
                self.add_entity(self.resolve_entity(data))
                logger.debug("Loaded entity '%s' from %s", data["entity"], yaml_file)

    def add_entity(self, entity: EntityDefinition) -> None:
        """Register a definition after checking its invariants."""
        check_definition(entity)
        self.entities[entity.name] = entity

    def resolve_entity(self, data: dict) -> EntityDefinition:
        """Convert a YAML entity dict to an EntityDefinition."""
        name = data["entity"]

        mapping = {str(k): str(v) for k, v in (data.get("mapping") or {}).items()}

        validation = {
            str(field_name): parse_rules(rules)
            for field_name, rules in (data.get("validation") or {}).items()
        }

        required = {
            str(verb): _listify(names)
            for verb, names in (data.get("required") or {}).items()
        }

        defaults_data = data.get("defaults") or {}
        returns = _listify(defaults_data.get("return")) or ["*"]
        order = defaults_data.get("order")
        defaults = QueryDefaults(
            join=_listify(defaults_data.get("join")),
            order_by=_listify(defaults_data.get("orderBy")),
            order=order.upper() if isinstance(order, str) else None,
            group_by=_listify(defaults_data.get("groupBy")),
            returns=returns,
            limit=defaults_data.get("limit"),
            offset=defaults_data.get("offset"),
        )

        return EntityDefinition(
            name=name,
            table=data.get("table", name),
            mapping=mapping,
            primary=_listify(data.get("primary", ["id"])),
            constants=_listify(data.get("constants")),
            allow_html=_listify(data.get("allowHtml")),
            required=required,
            validation=validation,
            joins={str(k): str(v) for k, v in (data.get("joins") or {}).items()},
            verbs=_listify(data.get("verbs")) or list(VERBS),
            defaults=defaults,
        )

    def get_entity(self, name: str) -> EntityDefinition | None:
        """Get a resolved entity by name."""
        return self.entities.get(name)

    def list_entities(self) -> list[str]:
        """List all entity names."""
        return list(self.entities.keys())
