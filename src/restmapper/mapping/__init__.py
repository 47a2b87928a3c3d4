"""Translation between external field names and physical references."""

from restmapper.mapping.fields import FieldMapper
from restmapper.mapping.joins import JoinResolver

__all__ = ["FieldMapper", "JoinResolver"]
