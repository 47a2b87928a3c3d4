"""Core types for the restmapper validation adapter."""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class ValidationError:
    """A single failed rule.

    Attributes:
        message: Human-readable message
        code: Machine-readable error code (e.g., "MANDATORY")
        field: External field name this error relates to
    """

    message: str
    code: str
    field: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "field": self.field,
        }


class Rule(Protocol):
    """A validation rule.

    Called with the field's value (or MISSING when absent) and the rule's
    declared arguments; returns a message when the value fails, else None.
    """

    def __call__(self, value: Any, *args: Any) -> str | None: ...
