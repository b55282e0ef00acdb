"""
fingerprint
===========

Validity fingerprints for cached snapshots.

A cached snapshot is only trusted when both fingerprints it was written with match
the current run:

- the *configuration* fingerprint covers the connection string, the query and the
  primary-key columns (in order), since any of them changes what a row means;
- the *executable* fingerprint covers the installed package itself, so a snapshot
  written by a different version of the hashing code is never compared against.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .hashing import sha256_hex
from .models import Snapshot

PACKAGE_DIR = Path(__file__).resolve().parent


def config_fingerprint(connection_string: str, query: str, primary_key: Sequence[str]) -> str:
    """Digest of the settings that define row identity and content."""
    material = connection_string + query + ",".join(primary_key)
    return sha256_hex(material.encode("utf-8"))


def executable_fingerprint(package_dir: Optional[Path] = None) -> str:
    """Digest of the package version and the bytes of its modules.

    Parameters
    ----------
    package_dir:
        Directory to digest. Defaults to the installed ``sqlnotify`` package.
    """
    root = package_dir or PACKAGE_DIR
    h = hashlib.sha256(__version__.encode("utf-8"))
    for path in sorted(root.glob("*.py")):
        h.update(path.name.encode("utf-8"))
        h.update(path.read_bytes())
    return h.hexdigest()


def is_valid(snapshot: Optional[Snapshot], fingerprint: str, exe_fingerprint: str) -> bool:
    """Return True if *snapshot* was written with the given fingerprints."""
    if snapshot is None:
        return False
    return snapshot.fingerprint == fingerprint and snapshot.executable_fingerprint == exe_fingerprint
