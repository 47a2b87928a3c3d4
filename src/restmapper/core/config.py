"""Environment-driven settings shared by the API and the CLI."""

import logging
import os
from pathlib import Path

DEFAULT_LOG_LEVEL = "WARNING"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from RESTMAPPER_LOG_LEVEL (default WARNING)."""
    level = (level or os.environ.get("RESTMAPPER_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def resolve_base_path() -> Path:
    """Project root: the current directory."""
    return Path.cwd()


def resolve_metadata_path(base_path: Path | None = None) -> Path:
    """RESTMAPPER_METADATA_PATH, else <base_path>/metadata."""
    override = os.environ.get("RESTMAPPER_METADATA_PATH")
    if override:
        return Path(override)
    return (base_path or resolve_base_path()) / "metadata"
