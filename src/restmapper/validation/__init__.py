"""restmapper validation adapter.

Usage:
    from restmapper.validation import ValidatorStore, register_builtin_rules

    # At application startup
    register_builtin_rules()

    store = ValidatorStore(entity.validation, params)
    failing = store.invalids(["name"])
"""

from restmapper.validation.registry import RuleRegistry
from restmapper.validation.rules import register_builtin_rules
from restmapper.validation.store import ValidatorStore
from restmapper.validation.types import Rule, ValidationError

__all__ = [
    "Rule",
    "RuleRegistry",
    "ValidationError",
    "ValidatorStore",
    "register_builtin_rules",
]
