"""Request parameter set and request-derived query shape.

The transport layer hands over a flat mapping of names to strings or lists
of strings. A handful of reserved names override the shape of the query
instead of filtering it:

    xjoin       related entities to join
    xorder_by   sort field(s)
    xorder      sort direction (ASC or DESC)
    xgroup_by   group-by field(s)
    xreturn     projected field(s)
    xlimit      page size
    xoffset     page offset
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Any, Iterator

from restmapper.core.errors import BadRequestError
from restmapper.metadata.loader import ORDER_DIRECTIONS, EntityDefinition


class _Missing:
    """Sentinel type for parameters that were not supplied."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()

# Override name -> reserved parameter name
RESERVED_PARAMS: dict[str, str] = {
    "join": "xjoin",
    "order_by": "xorder_by",
    "order": "xorder",
    "group_by": "xgroup_by",
    "returns": "xreturn",
    "limit": "xlimit",
    "offset": "xoffset",
}


class _TagStripper(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=False)
        self.parts: list[str] = []

    def handle_data(self, data: str) -> None:
        self.parts.append(data)

    def handle_entityref(self, name: str) -> None:
        self.parts.append(f"&{name};")

    def handle_charref(self, name: str) -> None:
        self.parts.append(f"&#{name};")


def strip_markup(value: Any) -> Any:
    """Remove HTML/XML tags from a string; lists are stripped item by item.

    Non-string values are returned unchanged. Character references are kept
    as written.
    """
    if isinstance(value, (list, tuple)):
        return [strip_markup(v) for v in value]
    if not isinstance(value, str) or "<" not in value:
        return value
    stripper = _TagStripper()
    stripper.feed(value)
    stripper.close()
    return "".join(stripper.parts)


class ParameterSet(Mapping):
    """Read-only snapshot of the request parameters.

    Use `lookup()` when "absent" must be told apart from an explicit None:
    it returns `MISSING` for names that were not supplied.
    """

    def __init__(self, values: Mapping[str, Any] | None = None):
        self._values: dict[str, Any] = dict(values or {})

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ParameterSet({self._values!r})"

    def lookup(self, name: str) -> Any:
        return self._values.get(name, MISSING)

    def has(self, name: str) -> bool:
        """True when the parameter was supplied with a non-empty value."""
        value = self._values.get(name, MISSING)
        return value is not MISSING and value is not None and value != "" and value != []

    def replace(self, **changes: Any) -> "ParameterSet":
        return ParameterSet({**self._values, **changes})

    def without_markup(self, fields: list[str], allow_html: list[str]) -> "ParameterSet":
        """Return a copy with markup stripped from the given fields."""
        values = dict(self._values)
        for name in fields:
            if name in values and name not in allow_html:
                values[name] = strip_markup(values[name])
        return ParameterSet(values)

    def field_values(self) -> dict[str, Any]:
        """Parameters that are not reserved query-shape overrides."""
        reserved = set(RESERVED_PARAMS.values())
        return {k: v for k, v in self._values.items() if k not in reserved}


def as_list(value: Any) -> list[str]:
    """Normalize a scalar, comma-separated string or list into a list."""
    if value is None or value is MISSING:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        result: list[str] = []
        for item in value:
            result.extend(as_list(item))
        return result
    return [str(value)]


def _as_bound(name: str, value: Any) -> int:
    try:
        bound = int(value)
    except (TypeError, ValueError):
        raise BadRequestError(
            f"Parameter '{name}' must be a non-negative integer", fields=[name]
        ) from None
    if bound < 0:
        raise BadRequestError(
            f"Parameter '{name}' must be a non-negative integer", fields=[name]
        )
    return bound


@dataclass
class QueryShape:
    """Request-derived query shape, fixed once the model is constructed.

    `overridden` records which attributes came from the request rather than
    from the entity's declared defaults; only those are checked against the
    known field names.
    """

    join: list[str] = field(default_factory=list)
    order_by: list[str] = field(default_factory=list)
    order: str | None = None
    group_by: list[str] = field(default_factory=list)
    returns: list[str] = field(default_factory=lambda: ["*"])
    limit: int | None = None
    offset: int | None = None
    overridden: set[str] = field(default_factory=set)

    @classmethod
    def from_params(cls, entity: EntityDefinition, params: ParameterSet) -> "QueryShape":
        """Apply the reserved parameters over the entity's defaults.

        Raises:
            BadRequestError: On an unknown join, bad direction or bad bounds
        """
        defaults = entity.defaults
        shape = cls(
            join=list(defaults.join),
            order_by=list(defaults.order_by),
            order=defaults.order,
            group_by=list(defaults.group_by),
            returns=list(defaults.returns),
            limit=defaults.limit,
            offset=defaults.offset,
        )

        for attr, param in RESERVED_PARAMS.items():
            value = params.lookup(param)
            if value is MISSING:
                continue
            shape.overridden.add(attr)

            if attr == "join":
                joins = as_list(value)
                unknown = [j for j in joins if j not in entity.joins]
                if unknown:
                    raise BadRequestError(
                        f"Unknown join(s) for '{entity.name}': {', '.join(unknown)}",
                        fields=[param],
                    )
                shape.join = joins
            elif attr == "order":
                direction = str(value).strip().upper()
                if direction not in ORDER_DIRECTIONS:
                    raise BadRequestError(
                        f"Parameter '{param}' must be ASC or DESC", fields=[param]
                    )
                shape.order = direction
            elif attr in ("limit", "offset"):
                setattr(shape, attr, _as_bound(param, value))
            elif attr == "returns":
                shape.returns = as_list(value) or ["*"]
            else:
                setattr(shape, attr, as_list(value))

        return shape

    def check_fields(self, known: set[str]) -> None:
        """Reject request-supplied sort/group/projection fields that are not known.

        Raises:
            BadRequestError: Naming the offending reserved parameter(s)
        """
        offending: list[str] = []
        unknown: list[str] = []
        for attr in ("order_by", "group_by", "returns"):
            if attr not in self.overridden:
                continue
            names = [n for n in getattr(self, attr) if n != "*" or attr != "returns"]
            bad = [n for n in names if n not in known]
            if bad:
                offending.append(RESERVED_PARAMS[attr])
                unknown.extend(bad)
        if offending:
            raise BadRequestError(
                f"Unknown field(s): {', '.join(unknown)}", fields=offending
            )
