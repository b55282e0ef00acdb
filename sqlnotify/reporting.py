"""
reporting
=========

Notification rendering.

Two strategies are available:

- :func:`render_changes` builds an HTML table with one row per change. Cells whose
  value changed show the old value struck through, followed by the new value.
- :func:`render_log_digest` sends the run's captured log lines instead.

Both share :func:`subject_line`. Rendering performs no I/O.
"""

from __future__ import annotations

import datetime as dt
import html
from typing import List, Optional, Sequence

from .hashing import display_value, values_equal
from .logs import LogBuffer
from .models import ChangeRecord, Notification, Value

TABLE_STYLE = """
<style>
    table {
      font-family: arial, sans-serif;
      border-collapse: collapse;
    }

    table * {
      font-size: 10px;
    }

    td, th {
      border: 1px solid #dddddd;
      text-align: left;
      padding: 8px;
    }

    tr:nth-child(even) {
      background-color: #dddddd;
    }
</style>
"""

EMPTY_STRUCK_VALUE = "&nbsp;" * 4


def change_summary(count: int) -> str:
    """``"1 change"`` or ``"N changes"``."""
    return "1 change" if count == 1 else f"{count} changes"


def subject_line(database: str, count: int, custom_subject: Optional[str] = None) -> str:
    """Build the notification subject.

    >>> subject_line("Sales", 2, "Orders")
    '[Sales] Orders - 2 changes'
    >>> subject_line("Sales", 2)
    '[Sales]2 changes'
    """
    subject = f"[{database}]"
    if custom_subject and custom_subject.strip():
        subject += f" {custom_subject} - "
    return subject + change_summary(count)


def since_text(last_run: Optional[dt.datetime], now: Optional[dt.datetime] = None) -> str:
    """Describe when the previous snapshot was taken.

    Returns an empty string when there was no previous run.
    """
    if last_run is None:
        return ""
    now = now or dt.datetime.now()
    hours_ago = round((now - last_run).total_seconds() / 3600, 1)
    return f"since {last_run:%Y-%m-%d %H:%M:%S} ({hours_ago} hours ago)"


def _header(subject: str, since: str, database: str, query: str) -> List[str]:
    heading = html.escape(f"{subject} {since}".strip())
    return [
        f"<h3>{heading}</h3>",
        "<p>You are receiving this email because you are subscribed to receive notifications "
        "for changes to the following SQL query on the "
        f"<b>{html.escape(database)}</b> database: </p>",
        f"<pre style='color: orange; margin-bottom: 16px;'>{html.escape(query)}</pre>",
    ]


def render_cell(old: Optional[Value], new: Value, has_old: bool) -> str:
    """Render a single table cell.

    The old value is struck through only when there is an old row and its value
    differs from the new one under :func:`~sqlnotify.hashing.values_equal`.
    """
    cell = ""
    if has_old and not values_equal(old, new):
        struck = html.escape(display_value(old)) or EMPTY_STRUCK_VALUE
        cell += f"<del style='color: red;'>{struck}</del> "
    cell += html.escape(display_value(new))
    return f"<td>{cell}</td>"


def render_table(changes: Sequence[ChangeRecord]) -> str:
    """Render *changes* as an HTML table.

    The column set is taken from the first record; every record is expected to
    have the same columns.
    """
    columns = list(changes[0].new_item.value.keys())

    lines: List[str] = [TABLE_STYLE, "<table>"]
    header = "<th>&nbsp;</th>" + "".join(f"<th>{html.escape(c)}</th>" for c in columns)
    lines.append(f"<tr>{header}</tr>")

    for change in changes:
        old_row = change.old_item.value if change.old_item is not None else None
        row = f"<th>{change.status.value}</th>"
        for column in columns:
            old = old_row.get(column) if old_row is not None else None
            row += render_cell(old, change.new_item.value[column], old_row is not None)
        lines.append(f"<tr>{row}</tr>")

    lines.append("</table>")
    return "\n".join(lines)


def render_changes(
    changes: Sequence[ChangeRecord],
    database: str,
    query: str,
    custom_subject: Optional[str] = None,
    since: str = "",
) -> Notification:
    """Render a non-empty change list into a notification.

    Parameters
    ----------
    changes:
        Change records, in the order they should appear.
    database:
        Database name used in the subject and body.
    query:
        The watched SQL query, quoted in the body.
    custom_subject:
        Optional subject text configured by the operator.
    since:
        Output of :func:`since_text`.

    Raises
    ------
    ValueError
        If *changes* is empty.
    """
    if not changes:
        raise ValueError("cannot render an empty change list")
    subject = subject_line(database, len(changes), custom_subject)
    lines = _header(subject, since, database, query)
    lines.append(render_table(changes))
    return Notification(subject=subject, body="\n".join(lines))


def render_log_digest(
    changes: Sequence[ChangeRecord],
    log_buffer: LogBuffer,
    database: str,
    query: str,
    custom_subject: Optional[str] = None,
    since: str = "",
) -> Notification:
    """Render the run's captured log lines as the notification body."""
    subject = subject_line(database, len(changes), custom_subject)
    lines = _header(subject, since, database, query)
    lines.append(f"<pre>{html.escape(log_buffer.getvalue())}</pre>")
    return Notification(subject=subject, body="\n".join(lines))
