"""Validator store: runs declared rules against a parameter set."""

from typing import Any, Iterable, Mapping

from restmapper.metadata.loader import RuleSpec
from restmapper.query.params import MISSING
from restmapper.validation.registry import RuleRegistry
from restmapper.validation.rules import is_empty
from restmapper.validation.types import ValidationError


class ValidatorStore:
    """Checks parameter values against an entity's validation rules.

    Rules other than presence checks are skipped for empty values, so an
    optional field only fails when it is supplied with a bad value. List
    values are checked item by item.
    """

    def __init__(self, validation: Mapping[str, list[RuleSpec]], params: Mapping[str, Any]):
        self.validation = validation
        self.params = params

    def invalids(self, fields: Iterable[str] | None = None) -> dict[str, list[ValidationError]]:
        """Return the failing fields with their errors.

        Args:
            fields: If given, limits validation to these fields

        Returns:
            Field name -> errors, in rule declaration order. Empty means valid.
        """
        names = list(self.validation) if fields is None else list(dict.fromkeys(fields))
        failures: dict[str, list[ValidationError]] = {}
        for name in names:
            errors = self._check_field(name, self.params.get(name, MISSING))
            if errors:
                failures[name] = errors
        return failures

    def _check_field(self, name: str, value: Any) -> list[ValidationError]:
        errors: list[ValidationError] = []
        for rule in self.validation.get(name, []):
            check = RuleRegistry.get(rule.name)
            if RuleRegistry.checks_presence(rule.name):
                message = check(value, *rule.args)
            elif is_empty(value):
                continue
            else:
                items = value if isinstance(value, (list, tuple)) else [value]
                message = next(
                    (m for m in (check(item, *rule.args) for item in items) if m),
                    None,
                )
            if message:
                errors.append(
                    ValidationError(
                        message=f"{name} {message}",
                        code=rule.name.upper(),
                        field=name,
                    )
                )
        return errors
