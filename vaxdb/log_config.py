"""Centralized logging configuration for vaxdb.

The library only ever calls logging.getLogger(__name__); nothing here runs
on import. Applications call setup_logging() once at start-up.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOGGER_NAME = "vaxdb"


def setup_logging(level=logging.INFO, log_dir: Optional[str] = None):
    """Configure logging for vaxdb.

    - Root logger: console handler at `level`
    - When `log_dir` is given, a RotatingFileHandler for the `vaxdb` logger
      (5 MB max, 3 backups) written to `log_dir/vaxdb.log`

    Safe to call multiple times — skips if handlers are already attached.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    root.addHandler(console)

    if log_dir is None:
        return

    os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(log_dir, f"{LOGGER_NAME}.log"),
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logging.getLogger(LOGGER_NAME).addHandler(handler)
