"""
store
=====

File-backed snapshot persistence.

The snapshot is a single JSON document::

    {
      "fingerprint": "...",
      "executable_fingerprint": "...",
      "items": [{"hash": "...", "value": {"id": 1, "name": "A"}}, ...]
    }

Writes go to a temporary file in the same directory which then replaces the
target, so a crash mid-write leaves the previous snapshot intact.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import SnapshotPersistError
from .hashing import decode_value, encode_value
from .models import DataItem, Snapshot

logger = logging.getLogger(__name__)

DEFAULT_CACHE_FILE = "queryCache.json"


def encode_snapshot(snapshot: Snapshot) -> Dict[str, Any]:
    """Return the JSON-compatible form of *snapshot*."""
    return {
        "fingerprint": snapshot.fingerprint,
        "executable_fingerprint": snapshot.executable_fingerprint,
        "items": [
            {"hash": item.hash, "value": {k: encode_value(v) for k, v in item.value.items()}}
            for item in snapshot.items
        ],
    }


def decode_snapshot(payload: Dict[str, Any]) -> Snapshot:
    """Inverse of :func:`encode_snapshot`.

    Raises
    ------
    KeyError, TypeError, AttributeError
        If *payload* does not have the expected shape.
    """
    items = [
        DataItem(
            hash=str(entry["hash"]),
            value={str(k): decode_value(v) for k, v in entry["value"].items()},
        )
        for entry in payload["items"]
    ]
    return Snapshot(
        fingerprint=str(payload["fingerprint"]),
        executable_fingerprint=str(payload["executable_fingerprint"]),
        items=items,
    )


class SnapshotStore:
    """Load and save the last-known snapshot at *path*."""

    def __init__(self, path: Path | str = DEFAULT_CACHE_FILE) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Optional[Snapshot]:
        """Return the stored snapshot, or None if there is no usable one."""
        if not self.exists():
            logger.debug("No snapshot at %s", self.path)
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            return decode_snapshot(payload)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable snapshot %s: %s", self.path, e)
            return None

    def save(self, snapshot: Snapshot) -> None:
        """Atomically replace the stored snapshot.

        Raises
        ------
        SnapshotPersistError
            If the file cannot be written.
        """
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(encode_snapshot(snapshot), f, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise SnapshotPersistError(f"failed to write snapshot {self.path}: {e}") from e

    def last_modified(self) -> Optional[dt.datetime]:
        """Local modification time of the snapshot file, if it exists."""
        if not self.exists():
            return None
        return dt.datetime.fromtimestamp(self.path.stat().st_mtime)
