"""Unit tests for reporting module."""

import datetime as dt
import logging

import pytest

from conftest import items
from sqlnotify.logs import LogBuffer
from sqlnotify.models import ChangeRecord
from sqlnotify.reporting import (
    change_summary,
    render_cell,
    render_changes,
    render_log_digest,
    since_text,
    subject_line,
)


def _added(row):
    return ChangeRecord(new_item=items([row])[0])


def _updated(old, new):
    old_item, new_item = items([old, new])
    return ChangeRecord(new_item=new_item, old_item=old_item)


class TestSubject:
    """Tests for subject helpers."""

    def test_change_summary(self) -> None:
        """Test singular and plural summaries."""
        assert change_summary(1) == "1 change"
        assert change_summary(3) == "3 changes"

    def test_subject_with_custom_text(self) -> None:
        """Test custom subject text is included."""
        assert subject_line("Sales", 1, "Orders") == "[Sales] Orders - 1 change"

    def test_subject_without_custom_text(self) -> None:
        """Test blank custom subject is ignored."""
        assert subject_line("Sales", 4, "  ") == "[Sales]4 changes"
        assert subject_line("Sales", 4) == "[Sales]4 changes"


class TestSinceText:
    """Tests for since_text function."""

    def test_no_previous_run(self) -> None:
        """Test empty text without history."""
        assert since_text(None) == ""

    def test_hours_rounded_to_one_decimal(self) -> None:
        """Test elapsed time formatting."""
        last = dt.datetime(2024, 5, 1, 8, 0, 0)
        now = dt.datetime(2024, 5, 1, 10, 30, 0)
        assert since_text(last, now) == "since 2024-05-01 08:00:00 (2.5 hours ago)"


class TestRenderCell:
    """Tests for render_cell function."""

    def test_new_only(self) -> None:
        """Test a cell without an old row."""
        assert render_cell(None, "B", has_old=False) == "<td>B</td>"

    def test_changed_value_is_struck(self) -> None:
        """Test a changed value shows the old one struck through."""
        assert render_cell("A", "B", has_old=True) == "<td><del style='color: red;'>A</del> B</td>"

    def test_empty_old_value_placeholder(self) -> None:
        """Test empty old renderings get a visible placeholder."""
        assert render_cell(None, "B", has_old=True) == (
            "<td><del style='color: red;'>&nbsp;&nbsp;&nbsp;&nbsp;</del> B</td>"
        )

    def test_type_change_is_a_difference(self) -> None:
        """Test 1 vs '1' is struck even though both print as 1."""
        assert "<del" in render_cell(1, "1", has_old=True)

    def test_values_are_escaped(self) -> None:
        """Test HTML in values is escaped."""
        assert render_cell(None, "<b>", has_old=False) == "<td>&lt;b&gt;</td>"


class TestRenderChanges:
    """Tests for render_changes function."""

    def test_added_record_has_no_strikethrough(self) -> None:
        """Test an Added row never contains struck-through segments."""
        note = render_changes([_added({"id": 2, "name": "B"})], "Sales", "select * from t")
        assert "<del" not in note.body
        assert "<th>Added</th><td>2</td><td>B</td>" in note.body
        assert note.subject == "[Sales]1 change"

    def test_updated_record_strikes_only_changed_columns(self) -> None:
        """Test struck segments appear exactly for changed columns."""
        change = _updated({"id": 1, "name": "A", "qty": 5}, {"id": 1, "name": "B", "qty": 5})
        note = render_changes([change], "Sales", "select * from t", "Orders", "since yesterday")
        assert note.body.count("<del") == 1
        assert "<th>Updated</th><td>1</td><td><del style='color: red;'>A</del> B</td><td>5</td>" in note.body
        assert note.subject == "[Sales] Orders - 1 change"
        assert "since yesterday" in note.body

    def test_header_and_row_order(self) -> None:
        """Test columns from the first record and rows in input order."""
        changes = [_added({"id": 3, "name": "C"}), _added({"id": 1, "name": "A"})]
        body = render_changes(changes, "Sales", "select 1").body
        assert "<tr><th>&nbsp;</th><th>id</th><th>name</th></tr>" in body
        assert body.index("<td>3</td>") < body.index("<td>1</td>")

    def test_query_is_quoted_in_body(self) -> None:
        """Test the watched query appears escaped in a pre block."""
        body = render_changes([_added({"id": 1})], "Sales", "select a < b").body
        assert "select a &lt; b</pre>" in body

    def test_empty_changes_rejected(self) -> None:
        """Test rendering nothing is a caller error."""
        with pytest.raises(ValueError):
            render_changes([], "Sales", "select 1")


class TestRenderLogDigest:
    """Tests for render_log_digest function."""

    def test_body_contains_captured_lines(self) -> None:
        """Test log lines captured during a run end up in the body."""
        buffer = LogBuffer()
        with buffer:
            logging.getLogger("sqlnotify.test").info("Row count has changed from 1 to 2.")
        note = render_log_digest([_added({"id": 1})], buffer, "Sales", "select 1")
        assert "Row count has changed from 1 to 2." in note.body
        assert note.subject == "[Sales]1 change"
        assert "<table>" not in note.body
