"""Interface for the flat, durable key/value storage under the cache.

Defines the contract the CacheManager relies on: write a string under a key,
read it back, remove it, and enumerate every stored key. Expiry is not
interpreted at this level.
"""

import abc
import contextlib
from typing import Iterator, Optional, Set

from ..models.common import CacheKey


class StorageError(Exception):
    """Raised when the underlying storage medium fails.

    Storage failures are fatal to the operation that hit them and are always
    propagated to the caller.
    """


class KeyValueStore(abc.ABC):
    """Abstract Base Class for flat string->string storage."""

    @abc.abstractmethod
    def put(self, key: CacheKey, value: str) -> None:
        """Stores ``value`` under ``key``, overwriting any previous value.

        Raises:
            StorageError: If the value could not be written.
        """
        pass

    @abc.abstractmethod
    def get(self, key: CacheKey) -> Optional[str]:
        """Returns the stored value, or None if the key was never written."""
        pass

    @abc.abstractmethod
    def remove(self, key: CacheKey) -> None:
        """Removes ``key``. Removing an absent key is a no-op."""
        pass

    @abc.abstractmethod
    def all_keys(self) -> Set[CacheKey]:
        """Returns every key currently stored, including metadata keys."""
        pass

    def clear(self) -> None:
        """Removes every key. Implementations may override with a faster path."""
        for key in self.all_keys():
            self.remove(key)

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Groups several writes so they are applied together.

        The default implementation provides no extra guarantee; stores with
        native transactions override it.
        """
        yield

    def close(self) -> None:
        """Releases any resources held by the store."""
        pass
