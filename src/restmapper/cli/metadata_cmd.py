"""Metadata CLI commands: validate."""

from pathlib import Path

import click

from restmapper.core.config import resolve_metadata_path
from restmapper.crud.registry import check_rules
from restmapper.metadata.loader import MetadataLoader
from restmapper.metadata.validator import validate_metadata_dir, validate_yaml_file
from restmapper.validation.rules import register_builtin_rules


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Validate a single entity YAML file instead of the whole metadata directory.",
)
def validate(strict: bool, target_path: Path | None):
    """Validate entity YAML files against the JSON Schema and load them."""
    metadata_path = resolve_metadata_path()

    # ── Schema (JSON Schema) validation ─────────────────────────────────────
    if target_path is not None:
        schema_issues = validate_yaml_file(target_path)
        if strict:
            for issue in schema_issues:
                issue.severity = "error"
    else:
        if not metadata_path.exists():
            click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
            raise SystemExit(1)
        schema_issues = validate_metadata_dir(metadata_path, strict=strict)

    errors = [i for i in schema_issues if i.severity == "error"]
    warnings = [i for i in schema_issues if i.severity == "warning"]

    for issue in schema_issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} schema error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    # ── Semantic (loader) validation ─────────────────────────────────────────
    if target_path is None:
        loader = MetadataLoader(metadata_path)
        register_builtin_rules()
        try:
            loader.load_all()
            for name in loader.list_entities():
                check_rules(loader.get_entity(name))
        except (ValueError, KeyError) as e:
            click.echo(click.style(f"\nSemantic validation failed: {e}", fg="red"), err=True)
            raise SystemExit(1)

        entities = loader.list_entities()
        click.echo(f"\nLoaded {len(entities)} entities:")
        for name in sorted(entities):
            entity = loader.get_entity(name)
            click.echo(
                f"  ✓ {name} ({len(entity.mapping)} fields, "
                f"{len(entity.joins)} joins, table: {entity.main_table})"
            )

    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))
