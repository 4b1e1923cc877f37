"""Filesystem cache for query results.

Entries are pickled QueryResult bundles stored as `<dir>/<name>.pkl`. The
default name is the CRC-32 of the query text, so repeating a query maps to
the same file across runs. The 32-bit space means two different queries can
share a name; a later persist() of the colliding query is then skipped as
"already exists" unless forced.

load() unpickles whatever it finds, so the cache directory must only be
writable by users you trust; a planted file runs code when loaded.
"""

import logging
import os
import pickle
import tempfile
import zlib
from dataclasses import dataclass
from typing import Optional

from .config import cache_dir
from .errors import CacheMissError, WriteError
from .query import QueryResult

logger = logging.getLogger(__name__)

EXTENSION = ".pkl"


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# Mode of a new cache entry, as open() would give it under the process umask
FILE_MODE = 0o666 & ~_current_umask()


@dataclass(frozen=True)
class PersistOutcome:
    path: str
    saved: bool

    @property
    def already_exists(self) -> bool:
        return not self.saved


def cache_name(query: str) -> str:
    """8 hex digit CRC-32 of the UTF-8 query text."""
    return format(zlib.crc32(query.encode("utf-8")) & 0xFFFFFFFF, "08x")


def cache_path(name: str, dir: Optional[str] = None) -> str:
    return os.path.join(cache_dir(dir), f"{name}{EXTENSION}")


def persist(
    result: QueryResult,
    name: Optional[str] = None,
    dir: Optional[str] = None,
    force: bool = False,
) -> PersistOutcome:
    """Save `result` unless an entry with the same name exists (or `force`).

    The directory must already exist. An existing entry is reported through
    the returned outcome, not raised.
    """
    if name is None:
        name = cache_name(result.query)
    directory = cache_dir(dir)
    path = os.path.join(directory, f"{name}{EXTENSION}")

    if not os.path.isdir(directory):
        logger.error("Cache directory %s does not exist", directory)
        raise WriteError(f"cache directory {directory} does not exist", target=path)

    if os.path.exists(path) and not force:
        logger.info("%s already exists!", path)
        return PersistOutcome(path, saved=False)

    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{name}.", suffix=".tmp")
        with os.fdopen(fd, "wb") as f:
            pickle.dump(result, f, protocol=pickle.HIGHEST_PROTOCOL)
        # mkstemp creates 0600; entries follow the umask like any other new file
        os.chmod(tmp_path, FILE_MODE)
        os.replace(tmp_path, path)
    except (OSError, pickle.PicklingError, TypeError, AttributeError) as e:
        _discard(tmp_path)
        logger.error("Failed to write %s: %s", path, e)
        raise WriteError(f"failed to write {path}: {e}", target=path) from e
    except BaseException:
        _discard(tmp_path)
        raise

    logger.info("%s saved!", path)
    return PersistOutcome(path, saved=True)


def load(query: Optional[str] = None, name: Optional[str] = None, dir: Optional[str] = None) -> QueryResult:
    """Read a cached bundle back by query text or by explicit name."""
    if (query is None) == (name is None):
        raise ValueError("exactly one of query or name is required")
    if name is None:
        name = cache_name(query)
    path = cache_path(name, dir)
    if not os.path.exists(path):
        raise CacheMissError(path)
    with open(path, "rb") as f:
        result = pickle.load(f)
    logger.debug("Loaded %s", path)
    return result


def _discard(path):
    if path is None:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
