"""Entity metadata: definitions, YAML loading and schema validation."""

from restmapper.metadata.loader import (
    VERBS,
    EntityDefinition,
    MetadataLoader,
    QueryDefaults,
    RuleSpec,
)

__all__ = ["VERBS", "EntityDefinition", "MetadataLoader", "QueryDefaults", "RuleSpec"]
