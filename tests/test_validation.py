"""Tests for validation rules, the rule registry and the validator store."""

import pytest

from restmapper.metadata.loader import RuleSpec
from restmapper.query.params import MISSING
from restmapper.validation import rules
from restmapper.validation.registry import RuleRegistry
from restmapper.validation.rules import register_builtin_rules
from restmapper.validation.store import ValidatorStore
from restmapper.validation.types import ValidationError


@pytest.fixture(autouse=True)
def builtin_rules():
    register_builtin_rules()
    yield
    RuleRegistry.clear()
    register_builtin_rules()


class TestRules:
    def test_mandatory(self):
        assert rules.mandatory("x") is None
        assert rules.mandatory(0) is None
        assert rules.mandatory("") == "is required"
        assert rules.mandatory("   ") == "is required"
        assert rules.mandatory(None) == "is required"
        assert rules.mandatory(MISSING) == "is required"
        assert rules.mandatory([]) == "is required"

    def test_string_bounds(self):
        assert rules.string("abc", 1, 5) is None
        assert rules.string("", 1) == "must be at least 1 characters"
        assert rules.string("abcdef", None, 5) == "must be at most 5 characters"

    def test_integer(self):
        assert rules.integer("42") is None
        assert rules.integer(" -3 ") is None
        assert rules.integer("4.2") == "must be an integer"
        assert rules.integer(True) == "must be an integer"
        assert rules.integer("5", 10) == "must be at least 10"
        assert rules.integer("50", None, 10) == "must be at most 10"

    def test_number(self):
        assert rules.number("4.25") is None
        assert rules.number("1e3") is None
        assert rules.number("abc") == "must be a number"
        assert rules.number("NaN") == "must be a number"
        assert rules.number("0.5", 1) == "must be at least 1"

    def test_boolean(self):
        for value in ("1", "0", "true", "No", True):
            assert rules.boolean(value) is None
        assert rules.boolean("maybe") == "must be a boolean"

    def test_email(self):
        assert rules.email("user@example.com") is None
        assert rules.email("not-an-email") is not None

    def test_url(self):
        assert rules.url("https://example.com/path") is None
        assert rules.url("ftp://example.com") is not None

    def test_dates(self):
        assert rules.iso_date("2024-02-29") is None
        assert rules.iso_date("2023-02-29") is not None
        assert rules.iso_datetime("2024-01-01T10:30:00") is None
        assert rules.iso_datetime("yesterday") is not None

    def test_regex_full_match(self):
        assert rules.regex("abc", "[a-z]+") is None
        assert rules.regex("abc1", "[a-z]+") == "has an invalid format"

    def test_choice(self):
        assert rules.choice("draft", "draft", "published") is None
        assert rules.choice("x", "draft", "published") == "must be one of: draft, published"


class TestRuleRegistry:
    def test_builtins_registered(self):
        for name in ("mandatory", "string", "integer", "number", "email", "choice"):
            assert RuleRegistry.is_registered(name)
        assert RuleRegistry.checks_presence("mandatory")
        assert not RuleRegistry.checks_presence("string")

    def test_register_custom_rule(self):
        def even(value):
            return None if int(value) % 2 == 0 else "must be even"

        RuleRegistry.register("even", even)
        assert RuleRegistry.get("even") is even
        assert "even" in RuleRegistry.list_registered()

    def test_register_is_idempotent(self):
        original = RuleRegistry.get("string")
        RuleRegistry.register("string", lambda value: "replaced")
        assert RuleRegistry.get("string") is original

    def test_unknown_rule(self):
        with pytest.raises(ValueError, match="not registered"):
            RuleRegistry.get("nope")

    def test_clear(self):
        RuleRegistry.clear()
        assert RuleRegistry.list_registered() == []
        assert not RuleRegistry.checks_presence("mandatory")


class TestValidatorStore:
    VALIDATION = {
        "name": [RuleSpec("mandatory"), RuleSpec("string", (2, 5))],
        "age": [RuleSpec("integer", (0, 150))],
        "tags": [RuleSpec("choice", ("a", "b"))],
    }

    def test_valid(self):
        store = ValidatorStore(self.VALIDATION, {"name": "Bob", "age": "30"})
        assert store.invalids() == {}

    def test_optional_fields_skip_empty_values(self):
        store = ValidatorStore(self.VALIDATION, {"name": "Bob", "age": ""})
        assert store.invalids() == {}

    def test_failures_in_rule_order(self):
        store = ValidatorStore(self.VALIDATION, {"age": "200"})
        invalid = store.invalids()
        assert list(invalid) == ["name", "age"]
        assert invalid["name"] == [
            ValidationError(message="name is required", code="MANDATORY", field="name")
        ]
        assert invalid["age"][0].message == "age must be at most 150"
        assert invalid["age"][0].code == "INTEGER"

    def test_multiple_failures_for_one_field(self):
        validation = {"code": [RuleSpec("string", (5,)), RuleSpec("regex", ("[0-9]+",))]}
        invalid = ValidatorStore(validation, {"code": "ab"}).invalids()
        assert [e.code for e in invalid["code"]] == ["STRING", "REGEX"]

    def test_limited_to_given_fields(self):
        store = ValidatorStore(self.VALIDATION, {"age": "x"})
        assert store.invalids(["age"]).keys() == {"age"}
        assert store.invalids([]) == {}

    def test_fields_without_rules_pass(self):
        store = ValidatorStore(self.VALIDATION, {"color": "red"})
        assert store.invalids(["color"]) == {}

    def test_list_values_checked_per_item(self):
        assert ValidatorStore(self.VALIDATION, {"name": "Bob", "tags": ["a", "b"]}).invalids() == {}
        invalid = ValidatorStore(self.VALIDATION, {"name": "Bob", "tags": ["a", "z"]}).invalids()
        assert list(invalid) == ["tags"]

    def test_error_to_dict(self):
        error = ValidationError(message="name is required", code="MANDATORY", field="name")
        assert error.to_dict() == {
            "message": "name is required",
            "code": "MANDATORY",
            "field": "name",
        }
