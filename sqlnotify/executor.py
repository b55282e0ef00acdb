"""
executor
========

Query execution against the watched database.

The rest of the package treats the database as a pure function:

- input: driver name + connection string + SQL
- output: :class:`QueryResult` (database name and rows as ordered dicts)

Two drivers are supported:

``odbc``
    ``connection_string`` is handed to :func:`pyodbc.connect` unchanged
    (SQL Server and any other ODBC source).
``snowflake``
    ``connection_string`` is a ``key=value;key=value`` list of
    :func:`snowflake.connector.connect` keyword arguments, e.g.
    ``account=xy12345;user=ME;password=...;warehouse=WH;database=DB;schema=PUBLIC``.

Any driver failure is raised as :class:`~sqlnotify.errors.QueryError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

try:
    import pyodbc
except ImportError:
    pyodbc = None

try:
    import snowflake.connector
    from snowflake.connector import DictCursor
except ImportError:
    snowflake = None
    DictCursor = None

from .errors import QueryError

logger = logging.getLogger(__name__)

DRIVERS = ("odbc", "snowflake")


@dataclass
class QueryResult:
    """Rows returned by a query plus the name of the database they came from."""

    database: str
    rows: List[Dict[str, Any]] = field(default_factory=list)


def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """Parse ``key=value;key=value`` into a dict with lower-cased keys.

    >>> parse_connection_string("account=ab123; User=me;")
    {'account': 'ab123', 'user': 'me'}
    """
    out: Dict[str, str] = {}
    for part in connection_string.split(";"):
        if not part.strip():
            continue
        key, sep, value = part.partition("=")
        if not sep:
            raise QueryError(f"malformed connection string segment: {part.strip()!r}")
        out[key.strip().lower()] = value.strip()
    return out


def _run_odbc(connection_string: str, query: str) -> QueryResult:
    if pyodbc is None:
        raise QueryError("pyodbc is required for the odbc driver. Install with: pip install pyodbc")
    try:
        conn = pyodbc.connect(connection_string)
    except pyodbc.Error as e:
        raise QueryError(f"failed to connect: {e}") from e
    try:
        database = conn.getinfo(pyodbc.SQL_DATABASE_NAME) or ""
        cursor = conn.cursor()
        cursor.execute(query)
        columns = [d[0] for d in cursor.description or []]
        rows = [dict(zip(columns, r)) for r in cursor.fetchall()]
        cursor.close()
        return QueryResult(database=database, rows=rows)
    except pyodbc.Error as e:
        raise QueryError(f"query failed: {e}") from e
    finally:
        conn.close()


def _run_snowflake(connection_string: str, query: str) -> QueryResult:
    if snowflake is None:
        raise QueryError(
            "snowflake-connector-python is required for the snowflake driver. "
            "Install it with: pip install snowflake-connector-python"
        )
    params = parse_connection_string(connection_string)
    try:
        conn = snowflake.connector.connect(**params)
    except snowflake.connector.errors.Error as e:
        raise QueryError(f"failed to connect: {e}") from e
    try:
        cursor = conn.cursor(DictCursor)
        cursor.execute(query)
        rows = [dict(r) for r in cursor.fetchall()]
        cursor.close()
        return QueryResult(database=conn.database or params.get("database", ""), rows=rows)
    except snowflake.connector.errors.Error as e:
        raise QueryError(f"query failed: {e}") from e
    finally:
        conn.close()


def execute_query(driver: str, connection_string: str, query: str) -> QueryResult:
    """Run *query* and return all rows.

    Parameters
    ----------
    driver:
        ``odbc`` or ``snowflake``.
    connection_string:
        Driver-specific connection string (see module docs).
    query:
        SQL text; executed as-is.

    Raises
    ------
    QueryError
        On connection or execution failure, an unknown driver, or a driver
        library that is not installed.
    """
    logger.debug("Executing query with %s driver", driver)
    if driver == "odbc":
        return _run_odbc(connection_string, query)
    if driver == "snowflake":
        return _run_snowflake(connection_string, query)
    raise QueryError(f"unknown driver: {driver} (expected one of {', '.join(DRIVERS)})")
