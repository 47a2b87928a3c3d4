"""Query CLI commands: render or run a single verb against an entity."""

import json
from pathlib import Path
from typing import Any

import click

from restmapper.core.config import resolve_base_path, resolve_metadata_path
from restmapper.core.errors import RestError
from restmapper.crud.model import WriteResult
from restmapper.crud.registry import ModelRegistry
from restmapper.metadata.loader import VERBS, MetadataLoader
from restmapper.persistence.config import DatabaseConfig, create_driver
from restmapper.persistence.dialects import DIALECTS, get_dialect


def parse_params(pairs: tuple[str, ...]) -> dict[str, Any]:
    """Turn repeated ``key=value`` options into a parameter mapping.

    A key given more than once collects its values into a list.
    """
    params: dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"'{pair}' is not of the form key=value", param_hint="-p")
        key, value = pair.split("=", 1)
        key = key.strip()
        if key in params:
            existing = params[key]
            params[key] = (existing if isinstance(existing, list) else [existing]) + [value]
        else:
            params[key] = value
    return params


def _loader() -> MetadataLoader:
    metadata_path = resolve_metadata_path()
    if not metadata_path.exists():
        click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
        raise SystemExit(1)
    loader = MetadataLoader(metadata_path)
    loader.load_all()
    return loader


def _fail(error: RestError) -> None:
    click.echo(click.style(f"Error {error.status_code}: {error.message}", fg="red"), err=True)
    if error.fields:
        click.echo(f"  fields: {', '.join(error.fields)}", err=True)
    raise SystemExit(1)


@click.command()
@click.argument("entity")
@click.argument("verb", type=click.Choice(VERBS))
@click.option("-p", "--param", "pairs", multiple=True, help="Request parameter as key=value.")
@click.option(
    "--dialect",
    default="sqlite",
    show_default=True,
    type=click.Choice(sorted(DIALECTS)),
    help="SQL dialect to render for.",
)
def sql(entity: str, verb: str, pairs: tuple[str, ...], dialect: str):
    """Print the SQL a verb would execute, without touching a database."""
    registry = ModelRegistry(_loader(), dialect=get_dialect(dialect))
    try:
        model = registry.load(entity, parse_params(pairs))
        click.echo(model.statement(verb))
    except RestError as e:
        _fail(e)


@click.command()
@click.argument("entity")
@click.argument("verb", type=click.Choice(VERBS))
@click.option("-p", "--param", "pairs", multiple=True, help="Request parameter as key=value.")
def run(entity: str, verb: str, pairs: tuple[str, ...]):
    """Execute a verb against the configured database and print the result as JSON."""
    loader = _loader()
    db_config = DatabaseConfig.from_env(resolve_base_path())
    if db_config.is_sqlite and db_config.sqlite_path != ":memory:":
        Path(db_config.sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    driver = create_driver(db_config)
    driver.connect()
    try:
        registry = ModelRegistry(loader, driver)
        model = registry.load(entity, parse_params(pairs))
        result = getattr(model, verb)()
    except RestError as e:
        _fail(e)
    finally:
        driver.close()

    if isinstance(result, WriteResult):
        result = result.to_dict()
    elif verb == "delete":
        result = {"affectedRows": result}
    click.echo(json.dumps(result, indent=2, default=str))
