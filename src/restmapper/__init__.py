"""restmapper: schema-agnostic REST-style CRUD over relational tables.

Entity definitions map external field names to physical columns; a model
instance turns one request's parameters into a single SQL statement and
shapes the driver's result back into external names.
"""

from restmapper.core.errors import (
    BadRequestError,
    DriverError,
    NotFoundError,
    NotImplementedVerbError,
    RestError,
)
from restmapper.crud import DispatchState, Model, ModelRegistry, WriteResult
from restmapper.metadata import EntityDefinition, MetadataLoader

__all__ = [
    "BadRequestError",
    "DispatchState",
    "DriverError",
    "EntityDefinition",
    "MetadataLoader",
    "Model",
    "ModelRegistry",
    "NotFoundError",
    "NotImplementedVerbError",
    "RestError",
    "WriteResult",
]
