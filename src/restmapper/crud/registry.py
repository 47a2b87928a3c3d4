"""Typed registry resolving entity names to definitions and model classes."""

import logging
from typing import Any, Mapping

from restmapper.core.errors import NotFoundError
from restmapper.crud.model import Model
from restmapper.metadata.loader import EntityDefinition, MetadataLoader
from restmapper.persistence.adapter import Driver
from restmapper.persistence.dialects import Dialect
from restmapper.validation.registry import RuleRegistry
from restmapper.validation.rules import register_builtin_rules

logger = logging.getLogger(__name__)


def check_rules(entity: EntityDefinition) -> None:
    """Check that every validation rule an entity references is registered.

    Raises:
        ValueError: Naming the entity and its unregistered rules
    """
    unknown = sorted(
        {
            rule.name
            for rules in entity.validation.values()
            for rule in rules
            if not RuleRegistry.is_registered(rule.name)
        }
    )
    if unknown:
        raise ValueError(
            f"Entity '{entity.name}' references unregistered validation rule(s): "
            + ", ".join(unknown)
        )


class ModelRegistry:
    """Resolves an entity name to a per-request model instance.

    Entities without a registered class are served by the generic `Model`.
    Custom classes (subclasses of `Model` overriding verbs) are registered
    at startup. Application validation rules are registered before the
    registry is created:

        registry = ModelRegistry(loader, driver)
        registry.register("item", ItemModel)
        model = registry.load("item", {"name": "foo"})
    """

    def __init__(
        self,
        loader: MetadataLoader,
        driver: Driver | None = None,
        dialect: Dialect | None = None,
    ):
        self.loader = loader
        self.driver = driver
        self.dialect = dialect
        self._models: dict[str, type[Model]] = {}
        register_builtin_rules()
        for name in loader.list_entities():
            check_rules(loader.get_entity(name))

    def register(self, name: str, model_class: type[Model]) -> None:
        """Register the model class serving an entity.

        Raises:
            TypeError: If model_class is not a Model subclass
        """
        if not (isinstance(model_class, type) and issubclass(model_class, Model)):
            raise TypeError(f"{model_class!r} is not a Model subclass")
        self._models[name] = model_class

    def definition(self, name: str) -> EntityDefinition:
        """Get an entity definition by name.

        Raises:
            NotFoundError: If no such entity is defined
        """
        entity = self.loader.get_entity(name)
        if entity is None:
            raise NotFoundError(f"Entity '{name}' not found")
        return entity

    def model_class(self, name: str) -> type[Model]:
        return self._models.get(name, Model)

    def load(self, name: str, params: Mapping[str, Any] | None = None) -> Model:
        """Create the model instance for one request.

        Raises:
            NotFoundError: Unknown entity, or a join on an unknown entity
            BadRequestError: Malformed query shape overrides
        """
        entity = self.definition(name)
        model_class = self.model_class(name)
        logger.debug("Loading %s for entity '%s'", model_class.__name__, name)
        return model_class(
            entity,
            params,
            driver=self.driver,
            dialect=self.dialect,
            registry=self,
        )

    def list_entities(self) -> list[str]:
        return self.loader.list_entities()
