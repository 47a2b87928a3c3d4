"""Tests for MetadataLoader and entity definition checks."""

from pathlib import Path

import pytest

from restmapper.metadata.loader import (
    VERBS,
    EntityDefinition,
    MetadataLoader,
    QueryDefaults,
    RuleSpec,
    check_definition,
    parse_rules,
)

ITEM_YAML = """\
entity: item
table: item, category
mapping:
  id: id
  name: item_name
  created: created_at
primary: id
constants: [created]
allowHtml: name
required:
  post: id
  put: [name]
validation:
  name:
    - mandatory
    - string: [1, 50]
  created:
    - regex: "^[0-9-]+$"
joins:
  category: LEFT JOIN category ON category.id = item.category_id
verbs: [get, put]
defaults:
  orderBy: name, id
  order: desc
  limit: 25
"""


def write_entity(metadata_dir: Path, name: str, content: str) -> Path:
    entities = metadata_dir / "entities"
    entities.mkdir(parents=True, exist_ok=True)
    path = entities / f"{name}.yaml"
    path.write_text(content)
    return path


@pytest.fixture
def loaded(tmp_path) -> MetadataLoader:
    write_entity(tmp_path, "item", ITEM_YAML)
    loader = MetadataLoader(tmp_path)
    loader.load_all()
    return loader


class TestLoadAll:
    def test_loads_entities(self, loaded):
        assert loaded.list_entities() == ["item"]
        assert loaded.get_entity("missing") is None

    def test_resolves_definition(self, loaded):
        item = loaded.get_entity("item")
        assert item.table == "item, category"
        assert item.main_table == "item"
        assert list(item.mapping) == ["id", "name", "created"]
        assert item.primary == ["id"]
        assert item.constants == ["created"]
        assert item.allow_html == ["name"]
        assert item.required == {"post": ["id"], "put": ["name"]}
        assert item.verbs == ["get", "put"]
        assert item.joins == {
            "category": "LEFT JOIN category ON category.id = item.category_id"
        }

    def test_resolves_rules(self, loaded):
        item = loaded.get_entity("item")
        assert item.validation["name"] == [RuleSpec("mandatory"), RuleSpec("string", (1, 50))]
        assert item.validation["created"] == [RuleSpec("regex", ("^[0-9-]+$",))]

    def test_resolves_defaults(self, loaded):
        defaults = loaded.get_entity("item").defaults
        assert defaults.order_by == ["name", "id"]
        assert defaults.order == "DESC"
        assert defaults.limit == 25
        assert defaults.returns == ["*"]

    def test_minimal_entity_defaults(self, tmp_path):
        write_entity(tmp_path, "tag", "entity: tag\nmapping:\n  id: id\n  label: label\n")
        loader = MetadataLoader(tmp_path)
        loader.load_all()
        tag = loader.get_entity("tag")
        assert tag.table == "tag"
        assert tag.primary == ["id"]
        assert tag.verbs == list(VERBS)
        assert tag.required_for("get") == []

    def test_missing_directory_loads_nothing(self, tmp_path):
        loader = MetadataLoader(tmp_path / "nowhere")
        loader.load_all()
        assert loader.list_entities() == []

    def test_invalid_definition_raises(self, tmp_path):
        write_entity(tmp_path, "bad", "entity: bad\nmapping:\n  name: name\n")
        with pytest.raises(ValueError, match="primary"):
            MetadataLoader(tmp_path).load_all()


class TestParseRules:
    def test_forms(self):
        assert parse_rules(["email", {"choice": ["a", "b"]}, {"integer": 5}, {"url": None}]) == [
            RuleSpec("email"),
            RuleSpec("choice", ("a", "b")),
            RuleSpec("integer", (5,)),
            RuleSpec("url"),
        ]

    def test_empty(self):
        assert parse_rules(None) == []

    def test_invalid_item(self):
        with pytest.raises(ValueError):
            parse_rules([{"a": 1, "b": 2}])


def make_entity(**overrides) -> EntityDefinition:
    data = {"name": "item", "table": "item", "mapping": {"id": "id", "name": "item_name"}}
    data.update(overrides)
    return EntityDefinition(**data)


class TestCheckDefinition:
    def test_valid(self):
        check_definition(make_entity())

    @pytest.mark.parametrize(
        "overrides,match",
        [
            ({"mapping": {}}, "empty mapping"),
            ({"primary": []}, "no primary"),
            ({"primary": ["uuid"]}, "primary"),
            ({"constants": ["created"]}, "constants"),
            ({"allow_html": ["body"]}, "allowHtml"),
            ({"required": {"put": ["title"]}}, "requires unmapped"),
            ({"required": {"patch": ["id"]}}, "unknown verb"),
            ({"verbs": ["get", "patch"]}, "unknown verb"),
            ({"defaults": QueryDefaults(order="UP")}, "ASC or DESC"),
            ({"defaults": QueryDefaults(join=["category"])}, "join catalog"),
        ],
    )
    def test_invalid(self, overrides, match):
        with pytest.raises(ValueError, match=match):
            check_definition(make_entity(**overrides))

    def test_duplicate_physical_reference_warns(self, caplog):
        entity = make_entity(mapping={"id": "id", "name": "label", "title": "label"})
        with caplog.at_level("WARNING"):
            check_definition(entity)
        assert "both map to 'label'" in caplog.text
