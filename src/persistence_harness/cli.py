"""
Persistence harness CLI.

Command-line interface for checking the database configuration that
database-backed tests will run against.

Usage:
    persistence-harness inspect
    persistence-harness inspect --properties ci/persistence.yaml
    persistence-harness check
"""

import logging
from dataclasses import replace
from pathlib import Path

import click
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from persistence_harness import settings
from persistence_harness.config import HarnessConfig, load_base_properties
from persistence_harness.dialects import resolve_dialect
from persistence_harness.exceptions import HarnessError
from persistence_harness.factory import create_factory
from persistence_harness.logging_config import logger_factory


logger = logging.getLogger(__name__)


def _load_config(properties: Path | None) -> HarnessConfig:
    config = HarnessConfig.from_env()
    if properties is not None:
        config = replace(config, properties_path=properties)
    return config


def _masked(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Set logging level",
)
def cli(log_level: str):
    """Persistence harness CLI.

    Inspects and checks the database used by database-backed tests.
    """
    logger_factory(level=log_level)


@cli.command()
@click.option(
    "--properties",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Properties file (defaults to $PERSISTENCE_HARNESS_PROPERTIES or persistence.yaml)",
)
def inspect(properties: Path | None):
    """
    Show the base properties and the dialect tests will use.

    Examples:
        persistence-harness inspect
        persistence-harness inspect --properties ci/persistence.yaml
    """
    config = _load_config(properties)
    try:
        base = load_base_properties(config)
    except HarnessError as e:
        raise click.ClickException(f"Configuration error: {e}")

    url = str(base.get(settings.DATABASE_URL) or settings.DEFAULT_DATABASE_URL)
    base[settings.DATABASE_URL] = _masked(url)

    click.echo(f"Properties file: {config.properties_path}")
    if not config.properties_path.exists():
        click.echo("  (not found, using defaults)")
    click.echo(f"Dialect: {resolve_dialect(base)}")
    for key in sorted(base):
        click.echo(f"  {key} = {base[key]}")


@cli.command()
@click.option(
    "--properties",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Properties file (defaults to $PERSISTENCE_HARNESS_PROPERTIES or persistence.yaml)",
)
def check(properties: Path | None):
    """
    Open and release a persistence factory against the configured database.

    Begins and rolls back a transaction to prove the database is reachable.

    Examples:
        persistence-harness check
    """
    config = _load_config(properties)
    try:
        base = load_base_properties(config)
        base[settings.SCHEMA_AUTO] = settings.SCHEMA_NONE
        factory = create_factory(base)
        try:
            with factory.create_context() as context:
                context.transaction.begin()
                context.session.execute(text("SELECT 1"))
                context.transaction.rollback()
        finally:
            factory.close()
    except HarnessError as e:
        raise click.ClickException(f"Configuration error: {e}")
    except SQLAlchemyError as e:
        logger.debug("Database check failed", exc_info=True)
        raise click.ClickException(f"Database error: {e}")

    url = str(base.get(settings.DATABASE_URL) or settings.DEFAULT_DATABASE_URL)
    click.echo(f"✓ Connected to {_masked(url)} ({resolve_dialect(base)})")


if __name__ == "__main__":
    cli()
