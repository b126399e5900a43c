#!/usr/bin/env python3
"""
Main CLI entry point for the BBS backend server.
"""

import asyncio
import os
import sys
from collections.abc import Awaitable, Callable

import click
import uvicorn

from bbs import __version__
from bbs.config import settings
from bbs.logging import configure_logging, get_logger

logger = get_logger(__name__)


def run_with_session(action: str, fn: Callable[..., Awaitable[None]]) -> None:
    """Run ``fn(db)`` inside a database session, exiting non-zero on failure."""
    from bbs.database.connection import dispose_database, get_async_session

    async def runner():
        try:
            async with get_async_session() as db:
                await fn(db)
        except Exception as e:
            logger.error("Command failed", action=action, error=str(e))
            click.echo(f"✗ Error: failed to {action}: {e}", err=True)
            sys.exit(1)
        finally:
            await dispose_database()

    asyncio.run(runner())


@click.group()
@click.version_option(version=__version__, prog_name="bbs")
def cli() -> None:
    """BBS CLI - run the server and administer tags and notifications."""
    pass


@cli.command()
@click.option("--host", default=settings.api_host, help="Host to bind to")
@click.option("--port", default=settings.api_port, type=int, help="Port to bind to")
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
@click.option(
    "--workers",
    default=1,
    type=int,
    help="Number of worker processes (default: 1)",
)
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: info)",
)
def serve(host: str, port: int, reload: bool, workers: int, log_level: str) -> None:
    """Start the BBS API server."""
    configure_logging(debug=(log_level == "debug"))

    logger.info(
        "Starting BBS API server",
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )

    # Reloaded and worker processes import the app themselves and read settings from env
    if log_level == "debug":
        os.environ["BBS_DEBUG"] = "true"
        os.environ["BBS_LOG_LEVEL"] = "debug"
    else:
        os.environ.setdefault("BBS_LOG_LEVEL", log_level)

    try:
        if reload or workers > 1:
            uvicorn.run(
                "bbs.api.app:app",
                host=host,
                port=port,
                reload=reload,
                workers=(workers if not reload else 1),
                log_level=log_level,
                access_log=True,
            )
        else:
            from bbs.api.app import app

            uvicorn.run(app, host=host, port=port, log_level=log_level, access_log=True)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error("Server startup failed", error=str(e))
        sys.exit(1)


@cli.group()
def tags() -> None:
    """Manage main and recommended tags."""
    pass


@tags.command("list")
def list_tags() -> None:
    """List main tags, recommended tags and the tag tree."""
    from bbs.tags.repository import list_main_tags, list_recommended_tags, load_tag_tree

    configure_logging()

    async def do_list(db):
        main_tags = await list_main_tags(db)
        recommended = await list_recommended_tags(db)
        tree = await load_tag_tree(db)

        click.echo(f"Main tags ({len(main_tags)}): {', '.join(main_tags) or '-'}")
        click.echo(f"Recommended ({len(recommended)}): {', '.join(recommended) or '-'}")
        click.echo()
        for main, subs in tree:
            click.echo(f"  {main}: {', '.join(subs) or '-'}")

    run_with_session("list tags", do_list)


@tags.command("add-main")
@click.argument("name")
@click.option(
    "--order",
    default=None,
    type=int,
    help="Sort order among main tags (default: after the last main tag)",
)
def add_main_tag(name: str, order: int | None) -> None:
    """Create NAME as a main tag, or promote an existing tag."""
    from bbs.tags.repository import ensure_main_tag, normalize_tags

    configure_logging()
    names = normalize_tags([name])
    if not names:
        raise click.BadParameter("tag name must not be empty", param_hint="NAME")

    async def do_add(db):
        position = await ensure_main_tag(db, names[0], sort_order=order)
        click.echo(f"✓ Main tag ensured: {names[0]} (order {position})")

    run_with_session("add main tag", do_add)


@tags.command("recommend")
@click.argument("names", nargs=-1, required=True)
def recommend_tags(names: tuple[str, ...]) -> None:
    """Mark NAMES as recommended tags."""
    from bbs.tags.repository import normalize_tags, set_recommended

    configure_logging()

    async def do_recommend(db):
        for name in normalize_tags(names):
            await set_recommended(db, name, True)
            click.echo(f"✓ Recommended: {name}")

    run_with_session("recommend tags", do_recommend)


@tags.command("unrecommend")
@click.argument("names", nargs=-1, required=True)
def unrecommend_tags(names: tuple[str, ...]) -> None:
    """Stop recommending NAMES."""
    from bbs.tags.repository import normalize_tags, set_recommended

    configure_logging()

    async def do_unrecommend(db):
        for name in normalize_tags(names):
            await set_recommended(db, name, False)
            click.echo(f"✓ No longer recommended: {name}")

    run_with_session("unrecommend tags", do_unrecommend)


@cli.group()
def notify() -> None:
    """Send notifications to users."""
    pass


@notify.command("announce")
@click.option("--title", required=True, help="Title of the system notification")
@click.option("--content", required=True, help="Body of the system notification")
def announce_cmd(title: str, content: str) -> None:
    """Send a system notification to every user."""
    from bbs.notifications.repository import announce

    configure_logging()
    if not title.strip() or not content.strip():
        raise click.BadParameter("title and content must not be empty")

    async def do_announce(db):
        count = await announce(db, title=title.strip(), content=content)
        click.echo(f"✓ Announcement sent to {count} user(s)")

    run_with_session("announce", do_announce)


@cli.command()
def seed() -> None:
    """Seed the database with initial data."""
    from bbs.database.seed_data import seed_initial_data

    configure_logging()

    async def do_seed(db):
        await seed_initial_data(db)
        click.echo("✓ Database seeded successfully")

    run_with_session("seed database", do_seed)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    cli()
