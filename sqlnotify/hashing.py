"""
hashing
=======

Canonical row serialization and content hashing.

Rows are hashed over a canonical JSON string:

- keys sorted at every level
- no insignificant whitespace
- :class:`~sqlnotify.models.RawValue` encoded as ``{"$raw": <type>, "value": <text>}``

Integers and floats are kept distinct (``1`` and ``1.0`` hash differently) and the
JSON snapshot format preserves that distinction on reload, so a row read back from
the cache hashes exactly as it did when it was written.

Primary API
-----------
- :func:`normalize_row`
- :func:`hash_row`
- :func:`make_item`
- :func:`values_equal`
"""

from __future__ import annotations

import datetime as dt
import hashlib
import json
import uuid
from decimal import Decimal
from typing import Any, Mapping

from .models import DataItem, RawValue, Row, Value

RAW_TAG = "$raw"


def normalize_value(value: Any) -> Value:
    """Convert a driver value into the row value model.

    Parameters
    ----------
    value:
        A value as returned by a DB-API cursor.

    Returns
    -------
    Value
        ``str``, ``int``, ``float``, ``bool`` and ``None`` are returned unchanged;
        every other type becomes a :class:`RawValue`.

    Examples
    --------
    >>> normalize_value(Decimal("12.50"))
    RawValue(type_name='decimal', text='12.50')
    >>> normalize_value(7)
    7
    """
    if value is None or isinstance(value, (bool, int, float, str, RawValue)):
        return value
    if isinstance(value, Decimal):
        return RawValue("decimal", str(value))
    if isinstance(value, dt.datetime):
        return RawValue("datetime", value.isoformat())
    if isinstance(value, dt.date):
        return RawValue("date", value.isoformat())
    if isinstance(value, dt.time):
        return RawValue("time", value.isoformat())
    if isinstance(value, (bytes, bytearray, memoryview)):
        return RawValue("bytes", bytes(value).hex())
    if isinstance(value, uuid.UUID):
        return RawValue("uuid", str(value))
    return RawValue(type(value).__name__.lower(), str(value))


def normalize_row(row: Mapping[str, Any]) -> Row:
    """Return a new row with every value passed through :func:`normalize_value`."""
    return {str(k): normalize_value(v) for k, v in row.items()}


def encode_value(value: Value) -> Any:
    """Return the JSON-compatible form of a row value."""
    if isinstance(value, RawValue):
        return {RAW_TAG: value.type_name, "value": value.text}
    return value


def decode_value(value: Any) -> Value:
    """Inverse of :func:`encode_value`."""
    if isinstance(value, dict) and RAW_TAG in value:
        return RawValue(str(value[RAW_TAG]), str(value.get("value", "")))
    return value


def _canonical_default(obj: Any) -> Any:
    if isinstance(obj, RawValue):
        return encode_value(obj)
    raise TypeError(f"value of type {type(obj).__name__} is not part of the row model")


def canonicalize(obj: Any) -> str:
    """Canonicalize a row (or a single value) to a stable JSON string."""
    return json.dumps(
        obj,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=_canonical_default,
    )


def sha256_hex(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of *data*."""
    return hashlib.sha256(data).hexdigest()


def hash_row(row: Row) -> str:
    """Compute the content digest of *row*.

    Two rows hash equal iff they have the same column set and, per column, values
    of the same type with the same content. Column order does not matter.
    """
    return sha256_hex(canonicalize(row).encode("utf-8"))


def make_item(row: Mapping[str, Any]) -> DataItem:
    """Normalize a driver row and wrap it with its digest."""
    value = normalize_row(row)
    return DataItem(hash=hash_row(value), value=value)


def values_equal(a: Value, b: Value) -> bool:
    """Type-aware value equality, consistent with :func:`hash_row`.

    Plain ``==`` treats ``1``, ``1.0`` and ``True`` as equal; this does not.
    """
    return canonicalize(a) == canonicalize(b)


def display_value(value: Value) -> str:
    """Return the text shown to humans for *value* (``None`` renders empty)."""
    if value is None:
        return ""
    return str(value)
