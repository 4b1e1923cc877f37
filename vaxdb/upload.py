"""Upload executor: write a DataFrame to a table."""

import logging
from typing import Optional

import pandas as pd

from .database.connection import Handle, session

logger = logging.getLogger(__name__)


def upload(
    data: pd.DataFrame,
    table: str,
    handle: Optional[Handle] = None,
    append: bool = True,
    row_names: bool = False,
) -> int:
    """Insert `data` into `table` and return the number of rows written.

    Uses the same ownership rule as run_query: a default connection is
    opened and closed when no handle is given.
    """
    if not isinstance(data, pd.DataFrame):
        raise TypeError(f"data must be a pandas DataFrame, got {type(data).__name__}")
    if not isinstance(table, str) or not table.strip():
        raise ValueError("table must be a non-empty string")

    with session(handle) as db:
        logger.debug("Uploading %d rows to %s on %s", len(data), table, db.target)
        return db.insert(data, table, append=append, row_names=row_names)
