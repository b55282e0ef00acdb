"""
sqlnotify
=========

Email a diff whenever the result of a watched SQL query changes.

Each run executes the configured query, compares the rows against the snapshot
cached by the previous run (matched by primary key), mails an HTML table of added
and updated rows, and replaces the snapshot.

Modules
-------
- :mod:`sqlnotify.hashing` -- canonical row serialization and digests
- :mod:`sqlnotify.fingerprint` -- snapshot validity fingerprints
- :mod:`sqlnotify.store` -- snapshot persistence
- :mod:`sqlnotify.diffing` -- primary-key matching and change classification
- :mod:`sqlnotify.reporting` -- notification rendering
- :mod:`sqlnotify.runner` -- orchestration of one run
- :mod:`sqlnotify.cli` -- command-line entry point
"""

__version__ = "1.0.0"

from .diffing import diff_items
from .hashing import hash_row, make_item
from .models import ChangeRecord, ChangeStatus, DataItem, Snapshot

__all__ = [
    "ChangeRecord",
    "ChangeStatus",
    "DataItem",
    "Snapshot",
    "diff_items",
    "hash_row",
    "make_item",
]
