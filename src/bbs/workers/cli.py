#!/usr/bin/env python3
"""
CLI entry point for BBS background workers.
"""

import sys

import click

from bbs import __version__
from bbs.config import settings
from bbs.logging import configure_logging, get_logger

logger = get_logger(__name__)


def start_worker(
    processes: int,
    threads: int,
    queue_list: list[str],
    log_level: str,
) -> None:
    """Start the Dramatiq worker process."""
    configure_logging(debug=(log_level == "debug"))

    from dramatiq.cli import main as dramatiq_main

    args = [
        "dramatiq",
        "bbs.workers.actors",
        f"--processes={processes}",
        f"--threads={threads}",
    ]
    for queue in queue_list:
        args.extend(["--queues", queue])

    original_argv = sys.argv
    sys.argv = args
    try:
        dramatiq_main()
    except KeyboardInterrupt:
        logger.info("Worker shutdown requested by user")
    except Exception as e:
        logger.error("Worker startup failed", error=str(e))
        sys.exit(1)
    finally:
        sys.argv = original_argv


@click.command()
@click.option(
    "--processes",
    default=1,
    type=int,
    help="Number of worker processes (default: 1)",
)
@click.option(
    "--threads",
    default=4,
    type=int,
    help="Number of worker threads per process (default: 4)",
)
@click.option(
    "--queues",
    default=settings.mail_queue_name,
    help="Comma-separated list of queues to process",
)
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: info)",
)
@click.version_option(version=__version__, prog_name="bbs-worker")
def main(processes: int, threads: int, queues: str, log_level: str) -> None:
    """Start BBS background workers."""
    queue_list = [q.strip() for q in queues.split(",") if q.strip()]
    logger.info(
        "Starting BBS workers",
        processes=processes,
        threads=threads,
        queues=queue_list,
    )
    start_worker(processes, threads, queue_list, log_level)


if __name__ == "__main__":
    main()
