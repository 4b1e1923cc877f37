"""Connection handle over a single psycopg2 session."""

import logging
from contextlib import contextmanager
from typing import Optional

import pandas as pd
import psycopg2
from pandas.api import types as ptypes
from psycopg2 import sql
from psycopg2.extensions import parse_dsn
from psycopg2.extras import execute_values

from ..config import get_dsn
from ..errors import DatabaseConnectionError, HandleClosedError, QueryError, WriteError

logger = logging.getLogger(__name__)

# Column that carries the frame index when row_names=True
ROW_NAMES_COLUMN = "row_names"


def connect(
    host: Optional[str] = None,
    port: Optional[str] = None,
    dbname: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
) -> "Handle":
    """Open a database session. Unset parameters come from vaxdb.config."""
    dsn = get_dsn(host=host, port=port, dbname=dbname, user=user, password=password)
    target = _describe(dsn)
    try:
        conn = psycopg2.connect(dsn)
    except psycopg2.Error as e:
        logger.error("Could not connect to %s: %s", target, e)
        raise DatabaseConnectionError(f"could not connect to {target}: {e}") from e
    logger.debug("Connected to %s", target)
    return Handle(conn, target)


def _describe(dsn: str) -> str:
    """host:port/dbname for messages. Never includes credentials.

    Without a host libpq uses the local Unix socket, shown as `[local]`.
    """
    params = parse_dsn(dsn) if dsn else {}
    host = params.get("host") or params.get("hostaddr") or "[local]"
    return "{}:{}/{}".format(host, params.get("port", "5432"), params.get("dbname", ""))


class Handle:
    """An open database session exposing query, insert and disconnect.

    Usable as a context manager; leaving the block disconnects.
    """

    def __init__(self, conn, target: str = ""):
        self._conn = conn
        self.target = target

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()
        return False

    def __repr__(self):
        state = "closed" if self.closed else "open"
        return f"<Handle {self.target} ({state})>"

    @property
    def closed(self) -> bool:
        return self._conn is None

    def _connection(self):
        if self._conn is None:
            raise HandleClosedError(f"handle to {self.target} is disconnected")
        return self._conn

    def query(self, statement: str) -> pd.DataFrame:
        """Run a parameterless statement and return its rows as a DataFrame.

        Statements that produce no result set (DDL, plain DML) return an
        empty DataFrame.
        """
        conn = self._connection()
        try:
            with conn.cursor() as cur:
                cur.execute(statement)
                if cur.description is None:
                    frame = pd.DataFrame()
                else:
                    columns = [col[0] for col in cur.description]
                    frame = pd.DataFrame.from_records(cur.fetchall(), columns=columns)
            conn.commit()
        except psycopg2.Error as e:
            _rollback(conn)
            logger.error("Query failed on %s: %s", self.target, e)
            raise QueryError(f"query failed on {self.target}: {e}", statement=statement) from e
        return frame

    def insert(self, data: pd.DataFrame, table: str, append: bool = True, row_names: bool = False) -> int:
        """Write `data` into `table`, returning the number of rows written.

        append=True creates the table from the frame's dtypes if it is
        missing and adds rows to it. append=False drops and recreates it.
        row_names=True writes the index as a leading `row_names` column.
        """
        conn = self._connection()
        frame = _prepare_frame(data, row_names)
        ident = table_identifier(table)
        definition = sql.SQL(", ").join(
            sql.SQL("{} {}").format(sql.Identifier(str(name)), sql.SQL(column_type(dtype)))
            for name, dtype in frame.dtypes.items()
        )
        column_names = sql.SQL(", ").join(sql.Identifier(str(name)) for name in frame.columns)
        rows = frame_rows(frame)

        try:
            with conn.cursor() as cur:
                if not append:
                    cur.execute(sql.SQL("DROP TABLE IF EXISTS {}").format(ident))
                cur.execute(sql.SQL("CREATE TABLE IF NOT EXISTS {} ({})").format(ident, definition))
                if rows:
                    execute_values(
                        cur,
                        sql.SQL("INSERT INTO {} ({}) VALUES %s").format(ident, column_names),
                        rows,
                    )
            conn.commit()
        except psycopg2.Error as e:
            _rollback(conn)
            logger.error("Insert into %s failed on %s: %s", table, self.target, e)
            raise WriteError(f"insert into {table} failed on {self.target}: {e}", target=table) from e

        logger.info("Wrote %d rows to %s (%s)", len(rows), table, "append" if append else "replace")
        return len(rows)

    def disconnect(self):
        """Close the session. Calling it again is a no-op."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        conn.close()
        logger.debug("Disconnected from %s", self.target)


@contextmanager
def session(handle: Optional[Handle] = None):
    """Yield a usable handle and enforce who closes it.

    A caller's handle is yielded as-is and left open. Without one, a
    default handle is opened and disconnected on every exit path.
    """
    if handle is not None:
        if handle.closed:
            raise HandleClosedError(f"handle to {handle.target} is disconnected")
        yield handle
        return

    handle = connect()
    try:
        yield handle
    finally:
        handle.disconnect()


def _rollback(conn):
    try:
        conn.rollback()
    except psycopg2.Error as e:
        # Connection is already gone; the original error is raised by the caller
        logger.warning("Rollback failed: %s", e)


def table_identifier(table: str) -> sql.Identifier:
    """Quote `table`, treating `schema.table` as a qualified name."""
    return sql.Identifier(*table.split("."))


def column_type(dtype) -> str:
    """PostgreSQL column type for a pandas dtype."""
    if ptypes.is_bool_dtype(dtype):
        return "BOOLEAN"
    if ptypes.is_integer_dtype(dtype):
        return "BIGINT"
    if ptypes.is_float_dtype(dtype):
        return "DOUBLE PRECISION"
    if isinstance(dtype, pd.DatetimeTZDtype):
        return "TIMESTAMPTZ"
    if ptypes.is_datetime64_any_dtype(dtype):
        return "TIMESTAMP"
    return "TEXT"


def _prepare_frame(data: pd.DataFrame, row_names: bool) -> pd.DataFrame:
    if not row_names:
        return data
    frame = data.copy()
    frame.insert(0, ROW_NAMES_COLUMN, data.index.astype(str))
    return frame


def frame_rows(frame: pd.DataFrame) -> list[tuple]:
    """Rows as tuples of Python values with NaN/NaT mapped to None."""
    clean = frame.astype(object).where(frame.notna(), None)
    return list(clean.itertuples(index=False, name=None))
