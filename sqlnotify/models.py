"""
models
======

Plain data types shared by the diff pipeline.

A *row* is a ``dict`` mapping column name to a value of one of the types
``str``, ``int``, ``float``, ``bool``, ``None`` or :class:`RawValue`. Rows keep the
column order produced by the query.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union


@dataclass(frozen=True)
class RawValue:
    """A driver value with no native JSON representation.

    Attributes:
        type_name: Short lower-case type tag (``decimal``, ``datetime``, ``bytes`` ...).
        text: Lossless text rendering of the value.
    """

    type_name: str
    text: str

    def __str__(self) -> str:
        return self.text


Value = Union[str, int, float, bool, None, RawValue]
Row = Dict[str, Value]


@dataclass(frozen=True)
class DataItem:
    """A row together with the digest of its canonical serialization."""

    hash: str
    value: Row


@dataclass(frozen=True)
class Snapshot:
    """The persisted result of one run."""

    fingerprint: str
    executable_fingerprint: str
    items: List[DataItem] = field(default_factory=list)


class ChangeStatus(str, enum.Enum):
    ADDED = "Added"
    UPDATED = "Updated"


@dataclass(frozen=True)
class ChangeRecord:
    """A new row that was either added or changed since the previous run.

    ``old_item`` is the matching row of the previous snapshot, or ``None`` when the
    row is new.
    """

    new_item: DataItem
    old_item: Optional[DataItem] = None

    @property
    def status(self) -> ChangeStatus:
        return ChangeStatus.ADDED if self.old_item is None else ChangeStatus.UPDATED


@dataclass(frozen=True)
class Notification:
    """Rendered notification payload."""

    subject: str
    body: str


class RunStatus(str, enum.Enum):
    SEEDED = "seeded"
    NO_CHANGES = "no_changes"
    NOTIFIED = "notified"
    NOTIFY_FAILED = "notify_failed"
    DRY_RUN = "dry_run"


@dataclass
class RunResult:
    """Outcome of :func:`sqlnotify.runner.run`."""

    status: RunStatus
    row_count: int = 0
    changes: List[ChangeRecord] = field(default_factory=list)
    notification: Optional[Notification] = None

    def describe(self) -> str:
        """Return a one-line human-readable summary."""
        return f"status={self.status.value} rows={self.row_count} changes={len(self.changes)}"
