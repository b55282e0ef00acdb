"""
diffing
=======

Primary-key matching between two snapshots.

Rows are identified by the *string form* of their primary-key values, so a key
that comes back as ``1`` on one run and ``"1"`` on another still matches. Content
is compared by row digest only.

Only additions and updates are reported. Rows of the previous snapshot that are
absent from the new result are not reported as removed.

Primary API
-----------
- :func:`diff_items`
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from .errors import PrimaryKeyError
from .hashing import display_value
from .models import ChangeRecord, DataItem, Row, Snapshot, Value

KeyTuple = Tuple[Optional[str], ...]


def _key_text(value: Value) -> Optional[str]:
    if value is None:
        return None
    return display_value(value)


def primary_key_values(row: Row, primary_key: Sequence[str]) -> KeyTuple:
    """Return the string forms of *row*'s primary-key values.

    Raises
    ------
    PrimaryKeyError
        If *row* lacks one of the key columns.
    """
    missing = [k for k in primary_key if k not in row]
    if missing:
        raise PrimaryKeyError(f"row has no primary key column(s): {', '.join(missing)}")
    return tuple(_key_text(row[k]) for k in primary_key)


def _index_by_key(items: Sequence[DataItem], primary_key: Sequence[str]) -> Dict[KeyTuple, DataItem]:
    index: Dict[KeyTuple, DataItem] = {}
    for item in items:
        if any(k not in item.value for k in primary_key):
            continue
        # First match wins when the key is not unique.
        index.setdefault(primary_key_values(item.value, primary_key), item)
    return index


def diff_items(
    prior: Optional[Snapshot],
    current: Sequence[DataItem],
    primary_key: Sequence[str],
) -> List[ChangeRecord]:
    """Classify each row of *current* against the *prior* snapshot.

    Parameters
    ----------
    prior:
        The validated snapshot of the previous run, or None when there is no
        usable history.
    current:
        Rows of this run, in query order.
    primary_key:
        Ordered, non-empty list of key column names.

    Returns
    -------
    list of ChangeRecord
        One record per added or changed row, in the order of *current*. Empty when
        *prior* is None: a first run only seeds history.

    Raises
    ------
    PrimaryKeyError
        If *primary_key* is empty or a row of *current* lacks a key column.
    """
    if not primary_key:
        raise PrimaryKeyError("primary key must name at least one column")
    if prior is None:
        return []

    index = _index_by_key(prior.items, primary_key)
    changes: List[ChangeRecord] = []
    for item in current:
        match = index.get(primary_key_values(item.value, primary_key))
        if match is None:
            changes.append(ChangeRecord(new_item=item))
        elif match.hash != item.hash:
            changes.append(ChangeRecord(new_item=item, old_item=match))
    return changes


def describe_key(row: Row, primary_key: Sequence[str]) -> str:
    """Human-readable key for logs, e.g. ``id: 1, region: EU``."""
    return ", ".join(f"{k}: {display_value(row.get(k))}" for k in primary_key)
