"""Convenience layer over PostgreSQL: connect, query, upload and cache results."""

from .cache import PersistOutcome, cache_name, load, persist
from .database.connection import Handle, connect, session
from .errors import (
    CacheMissError,
    DatabaseConnectionError,
    HandleClosedError,
    QueryError,
    VaxdbError,
    WriteError,
)
from .query import QueryResult, run_query
from .upload import upload

__all__ = [
    "CacheMissError",
    "DatabaseConnectionError",
    "Handle",
    "HandleClosedError",
    "PersistOutcome",
    "QueryError",
    "QueryResult",
    "VaxdbError",
    "WriteError",
    "cache_name",
    "connect",
    "load",
    "persist",
    "run_query",
    "session",
    "upload",
]
