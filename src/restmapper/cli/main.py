"""restmapper CLI entry point."""

import click

from restmapper.core.config import configure_logging


@click.group()
@click.option("--log-level", default=None, help="Override RESTMAPPER_LOG_LEVEL.")
def cli(log_level: str | None):
    """restmapper: metadata-driven REST/SQL mapping CLI."""
    configure_logging(log_level)


# Register subcommand groups
from restmapper.cli.metadata_cmd import metadata  # noqa: E402
from restmapper.cli.query_cmd import run, sql  # noqa: E402

cli.add_command(metadata)
cli.add_command(sql)
cli.add_command(run)
