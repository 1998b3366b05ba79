"""Durable KeyValueStore backed by a diskcache directory.

Every record is a plain string stored in the diskcache SQLite index, so the
cache contents survive process restarts. Failures of the storage medium are
surfaced as StorageError and never swallowed.
"""

import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Iterator, Optional, Set, Union

import diskcache as dc

from pocketcache.domain.interfaces.key_value_store import KeyValueStore, StorageError
from pocketcache.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

# Seconds diskcache waits on a locked SQLite database before raising Timeout
DEFAULT_SQLITE_TIMEOUT = 5

_STORAGE_FAILURES = (OSError, sqlite3.Error, dc.Timeout)


@contextlib.contextmanager
def _storage_errors(action: str, key: Optional[str] = None) -> Iterator[None]:
    """Converts low-level diskcache/sqlite failures into StorageError."""
    try:
        yield
    except _STORAGE_FAILURES as e:
        target = f" (key: {key})" if key is not None else ""
        logger.error(f"Storage failure during {action}{target}: {e}", exc_info=True)
        raise StorageError(f"Failed to {action}{target}: {e}") from e


class DiskStore(KeyValueStore):
    """Flat string store persisted with ``diskcache.Cache``."""

    def __init__(self, directory: Union[str, Path], timeout: int = DEFAULT_SQLITE_TIMEOUT):
        """Opens (or creates) the store directory.

        Args:
            directory: Directory holding the diskcache database.
            timeout: SQLite busy timeout in seconds.

        Raises:
            StorageError: If the directory or database cannot be opened.
        """
        self.directory = Path(directory).expanduser()
        with _storage_errors("open store"):
            self.directory.mkdir(parents=True, exist_ok=True)
            # No diskcache-level expiry: TTLs are kept as separate records above this layer
            self._cache = dc.Cache(str(self.directory), timeout=timeout)
        logger.info(f"Initialized disk store at: {self._cache.directory}")

    def put(self, key: CacheKey, value: str) -> None:
        with _storage_errors("write", key):
            self._cache.set(key, value, retry=True)

    def get(self, key: CacheKey) -> Optional[str]:
        with _storage_errors("read", key):
            return self._cache.get(key, default=None, retry=True)

    def remove(self, key: CacheKey) -> None:
        with _storage_errors("remove", key):
            self._cache.delete(key, retry=True)

    def all_keys(self) -> Set[CacheKey]:
        with _storage_errors("list keys"):
            return {CacheKey(k) for k in self._cache.iterkeys()}

    def clear(self) -> None:
        with _storage_errors("clear store"):
            count = self._cache.clear(retry=True)
        logger.info(f"Cleared disk store at {self.directory}. Removed {count} records.")

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Runs the enclosed writes in a single SQLite transaction."""
        with _storage_errors("run transaction"):
            with self._cache.transact(retry=True):
                yield

    def close(self) -> None:
        with _storage_errors("close store"):
            self._cache.close()
        logger.debug(f"Closed disk store at {self.directory}")
