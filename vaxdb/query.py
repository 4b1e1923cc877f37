"""Query executor: run a statement and bundle its result with metadata."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import pandas as pd

from .database.connection import Handle, session

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 5


@dataclass(frozen=True, eq=False)
class QueryResult:
    """Full result, head sample, statement text, description and (start, end)."""

    data: pd.DataFrame
    sample: pd.DataFrame
    query: str
    time: tuple[datetime, datetime]
    desc: str = ""

    @property
    def elapsed(self) -> timedelta:
        start, end = self.time
        return end - start


def run_query(
    statement: str,
    desc: str = "",
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    handle: Optional[Handle] = None,
) -> QueryResult:
    """Execute `statement` and return the full result, a head sample and timing.

    Without `handle` a default connection is opened for this call and closed
    before returning, including when the query fails. A caller's handle is
    left open.
    """
    if isinstance(sample_size, bool) or not isinstance(sample_size, int) or sample_size < 0:
        raise ValueError(f"sample_size must be a non-negative integer, got {sample_size!r}")

    started = datetime.now()
    clock = time.monotonic()
    with session(handle) as db:
        logger.debug("Running query on %s: %s", db.target, statement)
        data = db.query(statement)
    finished = datetime.now()

    logger.info(
        "Query returned %d rows in %.2fs%s",
        len(data), time.monotonic() - clock, f" ({desc})" if desc else "",
    )
    return QueryResult(
        data=data,
        sample=data.head(sample_size),
        query=statement,
        desc=desc,
        time=(started, finished),
    )
