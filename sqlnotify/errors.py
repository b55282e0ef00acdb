"""
errors
======

Exception types raised by :mod:`sqlnotify`.

Snapshot-load problems are deliberately absent: an unreadable or stale snapshot is
treated as "no history" and never raised.
"""

from __future__ import annotations


class SqlNotifyError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(SqlNotifyError):
    """Invalid or incomplete configuration. Fatal before any query runs."""


class QueryError(SqlNotifyError):
    """The query could not be executed. Fatal to the run; nothing is persisted."""


class PrimaryKeyError(SqlNotifyError):
    """A row is missing one of the configured primary-key columns."""


class SnapshotPersistError(SqlNotifyError):
    """The new snapshot could not be written to the cache file."""
