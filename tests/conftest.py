"""Shared test fixtures for the vaxdb test suite."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

ENV_VARS = [
    "DATABASE_URL",
    "VAXDB_HOST",
    "VAXDB_PORT",
    "VAXDB_DBNAME",
    "VAXDB_USER",
    "VAXDB_PASSWORD",
    "VAXDB_CACHE_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Run every test without connection settings from the host environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_cursor():
    """Mock cursor for a statement that returns no result set."""
    cursor = MagicMock()
    cursor.description = None
    cursor.fetchall.return_value = []
    return cursor


@pytest.fixture
def mock_conn(mock_cursor):
    """Mock psycopg2 connection whose cursor() context yields mock_cursor."""
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = mock_cursor
    conn.cursor.return_value.__exit__.return_value = False
    return conn


@pytest.fixture
def mock_connect(mock_conn):
    """Patch psycopg2.connect to hand out mock_conn."""
    with patch("vaxdb.database.connection.psycopg2.connect", return_value=mock_conn) as m:
        yield m


# ---------------------------------------------------------------------------
# Factory functions
# ---------------------------------------------------------------------------

def make_description(*names):
    """cursor.description for the given column names."""
    return [(name, None, None, None, None, None, None) for name in names]


def set_result(cursor, columns, rows):
    cursor.description = make_description(*columns)
    cursor.fetchall.return_value = rows


def make_query_result(**kwargs):
    """Create a QueryResult without touching a database."""
    from vaxdb.query import QueryResult

    data = kwargs.pop("data", None)
    if data is None:
        data = pd.DataFrame({"id": [1, 2, 3], "name": ["a", "b", "c"]})
    started = datetime(2025, 1, 15, 10, 0, 0)
    defaults = {
        "data": data,
        "sample": data.head(5),
        "query": "SELECT id, name FROM patients",
        "desc": "",
        "time": (started, started + timedelta(seconds=2)),
    }
    defaults.update(kwargs)
    return QueryResult(**defaults)
