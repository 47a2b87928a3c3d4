"""
metadata/validator.py: JSON Schema validation for entity YAML files.

Usage:
    from restmapper.metadata.validator import validate_metadata_dir

    issues = validate_metadata_dir(Path("metadata"))
    for issue in issues:
        print(issue)

Schema errors are reported with severity "error". A few semantic checks that
the schema cannot express (duplicate physical references, join clauses that
contain no JOIN keyword) are reported as warnings.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"
_ENTITY_SCHEMA = "entity.schema.json"


@dataclass
class ValidationIssue:
    """A single validation finding for a metadata YAML file."""

    file: Path
    message: str
    path: str = ""          # location within the document, e.g. "mapping/name"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


def _load_schema(name: str) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open() as fh:
        return json.load(fh)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _semantic_warnings(yaml_path: Path, doc: dict[str, Any]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    seen: dict[str, str] = {}
    for external, physical in (doc.get("mapping") or {}).items():
        if physical in seen:
            issues.append(
                ValidationIssue(
                    file=yaml_path,
                    message=(
                        f"'{external}' and '{seen[physical]}' both map to '{physical}'; "
                        f"rows resolve to '{seen[physical]}'"
                    ),
                    path=f"mapping/{external}",
                    severity="warning",
                )
            )
        else:
            seen[physical] = external

    for name, clause in (doc.get("joins") or {}).items():
        if "JOIN" not in str(clause).upper():
            issues.append(
                ValidationIssue(
                    file=yaml_path,
                    message=f"Join clause for '{name}' contains no JOIN keyword",
                    path=f"joins/{name}",
                    severity="warning",
                )
            )

    return issues


def validate_yaml_file(
    yaml_path: Path,
    schema: dict[str, Any] | None = None,
) -> list[ValidationIssue]:
    """
    Validate a single entity YAML file.

    Args:
        yaml_path: Path to the YAML file to validate.
        schema:    Pre-loaded entity schema. Loaded automatically if omitted.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    try:
        with yaml_path.open() as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if raw is None:
        return [
            ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    if schema is None:
        schema = _load_schema(_ENTITY_SCHEMA)
    validator = Draft202012Validator(schema)

    issues = [
        ValidationIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(raw), key=_json_path)
    ]
    if not issues and isinstance(raw, dict):
        issues.extend(_semantic_warnings(yaml_path, raw))
    return issues


def validate_metadata_dir(
    metadata_dir: Path,
    *,
    strict: bool = False,
) -> list[ValidationIssue]:
    """
    Validate every ``entities/*.yaml`` file under *metadata_dir*.

    Args:
        metadata_dir: Root metadata directory (contains ``entities/``).
        strict:       If ``True``, warnings are escalated to errors.

    Returns:
        A flat list of :class:`ValidationIssue` objects across all files.
    """
    if not metadata_dir.is_dir():
        return [
            ValidationIssue(
                file=metadata_dir,
                message=f"Metadata directory does not exist: {metadata_dir}",
            )
        ]

    try:
        schema = _load_schema(_ENTITY_SCHEMA)
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        return [
            ValidationIssue(
                file=_SCHEMAS_DIR,
                message=f"Failed to load JSON Schema: {exc}",
            )
        ]

    all_issues: list[ValidationIssue] = []
    target = metadata_dir / "entities"
    if not target.is_dir():
        logger.debug("No entities directory under %s", metadata_dir)
        return all_issues

    for yaml_file in sorted(target.glob("*.yaml")):
        file_issues = validate_yaml_file(yaml_file, schema)
        if strict:
            for issue in file_issues:
                if issue.severity == "warning":
                    issue.severity = "error"
        all_issues.extend(file_issues)

    return all_issues
