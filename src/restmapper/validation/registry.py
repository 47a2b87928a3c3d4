"""Rule registry for the validation adapter.

Rules must be explicitly registered before they can be referenced from
entity metadata. Built-in rules are registered with
`register_builtin_rules()`; applications register their own at startup.
"""

from restmapper.validation.types import Rule


class RuleRegistry:
    """Registry for validation rules, keyed by the name used in metadata.

    Example:
        RuleRegistry.register("sku", check_sku)
        rule = RuleRegistry.get("sku")
    """

    _rules: dict[str, Rule] = {}
    # Rules that run on absent/empty values (e.g. "mandatory")
    _presence: set[str] = set()

    @classmethod
    def register(cls, name: str, rule: Rule, checks_presence: bool = False) -> None:
        """Register a rule by name.

        Idempotent - re-registering the same name is a no-op.

        Args:
            name: Rule name as written in metadata (e.g., "string")
            rule: Callable implementing the Rule protocol
            checks_presence: If true, the rule also runs on empty values
        """
        if name in cls._rules:
            return
        cls._rules[name] = rule
        if checks_presence:
            cls._presence.add(name)

    @classmethod
    def get(cls, name: str) -> Rule:
        """Get a registered rule by name.

        Raises:
            ValueError: If the rule is not registered
        """
        if name not in cls._rules:
            raise ValueError(
                f"Validation rule '{name}' is not registered. "
                "Available rules: " + ", ".join(cls.list_registered())
            )
        return cls._rules[name]

    @classmethod
    def checks_presence(cls, name: str) -> bool:
        return name in cls._presence

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._rules

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._rules)

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._rules.clear()
        cls._presence.clear()

