"""
runner
======

One change-notification run:

1. compute the configuration and executable fingerprints
2. load the cached snapshot and discard it unless both fingerprints match
3. execute the query and hash every row
4. diff the new rows against the cached snapshot
5. persist the new snapshot
6. render and send a notification if anything was added or updated

The snapshot is written before the notification is sent, so a delivery failure
never costs the next run its baseline. A query failure aborts the run before
anything is written. A dry run renders the notification but neither sends it nor
saves the snapshot, so the next real run reports the same changes.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, List, Optional

from .config import Settings
from .diffing import describe_key, diff_items
from .executor import QueryResult, execute_query
from .fingerprint import config_fingerprint, executable_fingerprint, is_valid
from .hashing import canonicalize, make_item
from .logs import LogBuffer
from .models import ChangeRecord, DataItem, Notification, RunResult, RunStatus, Snapshot
from .notifier import EmailNotifier
from .reporting import render_changes, render_log_digest, since_text
from .store import SnapshotStore

logger = logging.getLogger(__name__)

Executor = Callable[[str, str, str], QueryResult]


def _log_changes(changes: List[ChangeRecord], primary_key: List[str]) -> None:
    for change in changes:
        keys = describe_key(change.new_item.value, primary_key)
        if change.old_item is None:
            logger.debug("New row: %s", keys)
        else:
            logger.debug("Row changed: %s", keys)
            logger.debug("Old value: %s", canonicalize(change.old_item.value))
        logger.debug("New value: %s", canonicalize(change.new_item.value))


def _render(
    settings: Settings,
    changes: List[ChangeRecord],
    database: str,
    since: str,
    log_buffer: LogBuffer,
) -> Notification:
    if settings.renderer == "log":
        return render_log_digest(changes, log_buffer, database, settings.query, settings.smtp.subject, since)
    return render_changes(changes, database, settings.query, settings.smtp.subject, since)


def run(
    settings: Settings,
    store: Optional[SnapshotStore] = None,
    executor: Executor = execute_query,
    notifier: Optional[EmailNotifier] = None,
    log_buffer: Optional[LogBuffer] = None,
    now: Optional[dt.datetime] = None,
) -> RunResult:
    """Execute one run and return its outcome.

    Parameters
    ----------
    settings:
        Validated settings.
    store:
        Snapshot store; defaults to a file store at ``settings.cache_file``.
    executor:
        Callable ``(driver, connection_string, query) -> QueryResult``.
    notifier:
        Notification sender; defaults to :class:`EmailNotifier` for ``settings.smtp``.
    log_buffer:
        Capture of this run's log lines, used by the ``log`` renderer.
    now:
        Reference time for the "since" text.

    Raises
    ------
    QueryError
        If the query fails. No snapshot is written.
    PrimaryKeyError
        If a returned row lacks a primary-key column.
    SnapshotPersistError
        If the new snapshot cannot be saved.
    """
    store = store or SnapshotStore(settings.cache_file)
    notifier = notifier or EmailNotifier(settings.smtp)
    log_buffer = log_buffer or LogBuffer()

    with log_buffer:
        logger.info("Program start.")
        logger.info("Looking for changes for query: %s", settings.query)

        fingerprint = config_fingerprint(settings.connection_string, settings.query, settings.primary_key)
        exe_fingerprint = executable_fingerprint()

        prior = store.load()
        since = ""
        if prior is not None and not is_valid(prior, fingerprint, exe_fingerprint):
            logger.warning(
                "Cached results found but options hash or executable hash has changed. Ignoring cached results."
            )
            prior = None
        elif prior is not None:
            since = since_text(store.last_modified(), now)
            logger.info("Cached results (%d rows) found from previous run %s.", len(prior.items), since)

        result = executor(settings.driver, settings.connection_string, settings.query)
        items: List[DataItem] = [make_item(row) for row in result.rows]
        logger.info("Query found %d rows.", len(items))

        if prior is not None and len(prior.items) != len(items):
            logger.warning("Row count has changed from %d to %d.", len(prior.items), len(items))

        changes = diff_items(prior, items, settings.primary_key)
        _log_changes(changes, settings.primary_key)

        if settings.dry_run:
            logger.info("Dry run; snapshot in %s left unchanged.", store.path)
        else:
            logger.info("Storing %d rows in %s.", len(items), store.path)
            store.save(Snapshot(fingerprint=fingerprint, executable_fingerprint=exe_fingerprint, items=items))

        outcome = RunResult(status=RunStatus.SEEDED, row_count=len(items), changes=changes)
        database = result.database or "database"

        if changes:
            logger.info("Changes detected. Sending notification.")
            notification = _render(settings, changes, database, since, log_buffer)
            outcome.notification = notification
            if settings.dry_run:
                logger.info("Dry run; not sending '%s'.", notification.subject)
                outcome.status = RunStatus.DRY_RUN
            elif notifier.send(settings.smtp.to_addresses, notification.subject, notification.body):
                outcome.status = RunStatus.NOTIFIED
            else:
                logger.error("Changes detected but failed to send notification.")
                outcome.status = RunStatus.NOTIFY_FAILED
        elif prior is not None:
            logger.info("No changes detected.")
            outcome.status = RunStatus.NO_CHANGES
        else:
            logger.info("No usable history; snapshot seeded.")

        logger.info("Program end.")
    return outcome
