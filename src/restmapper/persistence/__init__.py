"""Persistence layer - database drivers and SQL dialects."""

from restmapper.persistence.adapter import Driver, QueryResult
from restmapper.persistence.config import DatabaseConfig, create_driver
from restmapper.persistence.dialects import DIALECTS, Dialect, get_dialect

__all__ = [
    "DIALECTS",
    "DatabaseConfig",
    "Dialect",
    "Driver",
    "QueryResult",
    "create_driver",
    "get_dialect",
]
