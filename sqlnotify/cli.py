"""Command-line interface for SQL change notifications.

Usage::

    sqlnotify --config config.yml
    sqlnotify --config config.yml --dry-run --log-level DEBUG
    python -m sqlnotify --config config.yml --cache-file /var/lib/sqlnotify/orders.json

Exit codes: 0 success, 1 query or snapshot-persist error, 2 configuration error,
3 changes detected but the notification could not be sent.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from . import __version__
from .config import build_settings, load_config
from .errors import ConfigError, PrimaryKeyError, QueryError, SnapshotPersistError
from .logs import configure_logging
from .models import RunStatus
from .runner import run

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RUN_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_NOTIFY_FAILED = 3


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="sqlnotify",
        description="Run a SQL query, diff it against the previous run and email the changes.",
    )
    ap.add_argument("--config", default="config.yml", type=Path, help="Path to config.yml (default: config.yml)")
    ap.add_argument("--cache-file", default=None, help="Override cache_file from config")
    ap.add_argument("--connection-string", default=None, help="Override database.connection_string")
    ap.add_argument("--driver", default=None, choices=["odbc", "snowflake"], help="Override database.driver")
    ap.add_argument("--renderer", default=None, choices=["table", "log"], help="Override renderer")
    ap.add_argument("--log-level", default=None, help="Override logging.level (DEBUG, INFO, ...)")
    ap.add_argument(
        "--dry-run",
        action="store_true",
        help="Render and print the notification without sending it or saving the snapshot",
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {
        "cache_file": args.cache_file,
        "connection_string": args.connection_string,
        "driver": args.driver,
        "renderer": args.renderer,
        "log_level": args.log_level,
        "dry_run": args.dry_run,
    }

    try:
        settings = build_settings(load_config(args.config.resolve()), overrides)
    except ConfigError as e:
        configure_logging(args.log_level or "INFO")
        logger.error("%s", e)
        return EXIT_CONFIG_ERROR

    configure_logging(settings.log_level)

    try:
        result = run(settings)
    except PrimaryKeyError as e:
        logger.error("Primary key error: %s", e)
        return EXIT_CONFIG_ERROR
    except QueryError as e:
        logger.error("Query failed: %s", e)
        return EXIT_RUN_ERROR
    except SnapshotPersistError as e:
        logger.error("%s", e)
        return EXIT_RUN_ERROR

    logger.info("Run finished: %s", result.describe())
    if result.status is RunStatus.NOTIFY_FAILED:
        return EXIT_NOTIFY_FAILED
    if result.status is RunStatus.DRY_RUN and result.notification is not None:
        print(result.notification.subject)
        print(result.notification.body)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
