"""In-memory implementation of the KeyValueStore interface.

Not durable across restarts; used by tests and for throwaway sessions.
"""

import logging
from threading import Lock
from typing import Dict, Optional, Set

from pocketcache.domain.interfaces.key_value_store import KeyValueStore
from pocketcache.domain.models.common import CacheKey

logger = logging.getLogger(__name__)


class InMemoryStore(KeyValueStore):
    """Dictionary-backed store. Each single operation is atomic."""

    def __init__(self):
        self._data: Dict[CacheKey, str] = {}
        self._lock = Lock()

    def put(self, key: CacheKey, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def get(self, key: CacheKey) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def remove(self, key: CacheKey) -> None:
        with self._lock:
            self._data.pop(key, None)

    def all_keys(self) -> Set[CacheKey]:
        with self._lock:
            return set(self._data.keys())

    def clear(self) -> None:
        with self._lock:
            count = len(self._data)
            self._data.clear()
        logger.debug(f"Cleared in-memory store ({count} records).")
