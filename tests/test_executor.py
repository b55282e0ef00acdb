"""Unit tests for executor module."""

from unittest.mock import MagicMock, patch

import pytest

from sqlnotify.errors import QueryError
from sqlnotify.executor import execute_query, parse_connection_string


class FakeOdbcError(Exception):
    pass


@pytest.fixture
def fake_pyodbc():
    """Patch pyodbc with a mock exposing a one-row result."""
    with patch("sqlnotify.executor.pyodbc") as mock_pyodbc:
        mock_pyodbc.Error = FakeOdbcError
        conn = mock_pyodbc.connect.return_value
        conn.getinfo.return_value = "Sales"
        cursor = conn.cursor.return_value
        cursor.description = [("id",), ("name",)]
        cursor.fetchall.return_value = [(1, "A"), (2, "B")]
        yield mock_pyodbc


class TestParseConnectionString:
    """Tests for parse_connection_string function."""

    def test_pairs(self) -> None:
        """Test key=value pairs with whitespace and trailing separator."""
        assert parse_connection_string("Account=ab1; user = me ;") == {"account": "ab1", "user": "me"}

    def test_value_may_contain_equals(self) -> None:
        """Test only the first '=' splits."""
        assert parse_connection_string("password=a=b") == {"password": "a=b"}

    def test_malformed_segment(self) -> None:
        """Test a segment without '=' is rejected."""
        with pytest.raises(QueryError, match="malformed"):
            parse_connection_string("account")


class TestExecuteQuery:
    """Tests for execute_query function."""

    def test_odbc_rows_as_dicts(self, fake_pyodbc: MagicMock) -> None:
        """Test ODBC rows are keyed by column name in column order."""
        result = execute_query("odbc", "Driver={X};Server=db", "select id, name from t")
        assert result.database == "Sales"
        assert result.rows == [{"id": 1, "name": "A"}, {"id": 2, "name": "B"}]
        fake_pyodbc.connect.assert_called_once_with("Driver={X};Server=db")
        fake_pyodbc.connect.return_value.close.assert_called_once()

    def test_odbc_connect_failure(self, fake_pyodbc: MagicMock) -> None:
        """Test connection errors become QueryError."""
        fake_pyodbc.connect.side_effect = FakeOdbcError("login failed")
        with pytest.raises(QueryError, match="login failed"):
            execute_query("odbc", "Driver={X};Server=db", "select 1")

    def test_odbc_query_failure_closes_connection(self, fake_pyodbc: MagicMock) -> None:
        """Test execution errors become QueryError and the connection is closed."""
        fake_pyodbc.connect.return_value.cursor.return_value.execute.side_effect = FakeOdbcError("bad column")
        with pytest.raises(QueryError, match="bad column"):
            execute_query("odbc", "Driver={X};Server=db", "select nope from t")
        fake_pyodbc.connect.return_value.close.assert_called_once()

    def test_snowflake_uses_dict_cursor(self) -> None:
        """Test Snowflake parameters come from the connection string."""
        with patch("sqlnotify.executor.snowflake") as mock_sf, patch("sqlnotify.executor.DictCursor") as dict_cursor:
            mock_sf.connector.errors.Error = FakeOdbcError
            conn = mock_sf.connector.connect.return_value
            conn.database = "ANALYTICS"
            conn.cursor.return_value.fetchall.return_value = [{"ID": 1}]
            result = execute_query("snowflake", "account=ab1;user=me;database=ANALYTICS", "select 1")
        mock_sf.connector.connect.assert_called_once_with(account="ab1", user="me", database="ANALYTICS")
        conn.cursor.assert_called_once_with(dict_cursor)
        assert result.database == "ANALYTICS"
        assert result.rows == [{"ID": 1}]

    def test_missing_odbc_library(self) -> None:
        """Test a missing pyodbc install is reported as QueryError."""
        with patch("sqlnotify.executor.pyodbc", None):
            with pytest.raises(QueryError, match="pip install pyodbc"):
                execute_query("odbc", "Driver={X};Server=db", "select 1")

    def test_missing_snowflake_library(self) -> None:
        """Test a missing snowflake-connector-python install is reported as QueryError."""
        with patch("sqlnotify.executor.snowflake", None):
            with pytest.raises(QueryError, match="snowflake-connector-python"):
                execute_query("snowflake", "account=ab1;user=me", "select 1")

    def test_unknown_driver(self) -> None:
        """Test an unknown driver name is a QueryError."""
        with pytest.raises(QueryError, match="unknown driver"):
            execute_query("oracle", "x", "select 1")
