#!/usr/bin/env python3
"""
CLI entry point for BBS database migrations.
"""

import sys
from collections.abc import Callable
from pathlib import Path

import click

from alembic import command
from alembic.config import Config
from bbs import __version__
from bbs.logging import configure_logging, get_logger

logger = get_logger(__name__)


def get_alembic_config() -> Config:
    """Get Alembic configuration from the project root's alembic.ini."""
    project_dir = Path(__file__).parent.parent.parent.parent
    alembic_ini = project_dir / "alembic.ini"

    if not alembic_ini.exists():
        raise FileNotFoundError(f"alembic.ini not found at {alembic_ini}")

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(project_dir / "alembic"))
    return config


def _run(action: str, fn: Callable[[Config], None]) -> None:
    """Run an Alembic command, exiting non-zero on failure."""
    try:
        fn(get_alembic_config())
    except Exception as e:
        logger.error("Migration command failed", action=action, error=str(e))
        sys.exit(1)


@click.group()
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: info)",
)
@click.version_option(version=__version__, prog_name="bbs-migrate")
def main(log_level: str) -> None:
    """BBS database migration management."""
    configure_logging(debug=(log_level == "debug"))


@main.command()
@click.argument("revision", default="head")
@click.option("--sql", is_flag=True, help="Print the SQL instead of running it")
def upgrade(revision: str, sql: bool) -> None:
    """Upgrade database to a revision (default: head)."""
    logger.info("Upgrading database", revision=revision, offline=sql)
    _run("Database upgrade", lambda config: command.upgrade(config, revision, sql=sql))
    logger.info("Database upgrade completed")


@main.command()
@click.argument("revision", default="-1")
def downgrade(revision: str) -> None:
    """Downgrade database to a revision (default: -1)."""
    logger.info("Downgrading database", revision=revision)
    _run("Database downgrade", lambda config: command.downgrade(config, revision))
    logger.info("Database downgrade completed")


@main.command()
@click.option("-m", "--message", required=True, help="Revision message")
@click.option("--autogenerate/--no-autogenerate", default=True, help="Auto-generate migration")
def revision(message: str, autogenerate: bool) -> None:
    """Create a new migration revision."""
    logger.info("Creating new migration", message=message, autogenerate=autogenerate)
    _run(
        "Migration creation",
        lambda config: command.revision(config, message=message, autogenerate=autogenerate),
    )


@main.command()
def current() -> None:
    """Show current database revision."""
    _run("Reading current revision", command.current)


@main.command()
def history() -> None:
    """Show migration history."""
    _run("Reading migration history", command.history)


if __name__ == "__main__":
    main()
