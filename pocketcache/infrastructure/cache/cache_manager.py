"""Redis-style cache facade over a flat KeyValueStore.

Provides expiring keys, literal-prefix enumeration, atomic counters and typed
get/set helpers for catalog products. Expiry is kept in a separate record
(``<key>_expiry``) holding the absolute expiry time in epoch milliseconds. The ``_expiry``
suffix is therefore reserved: writes to such keys raise ValueError.

Eviction is lazy: an expired entry is removed when it is next read through
``get``/``exists`` or by ``cleanup_expired_keys``. There is no size bound and
no LRU eviction, so keys accumulate between sweeps.

Every compound operation runs under one re-entrant lock and inside a store
transaction, so other threads never observe a value record without its
expiry record (or the reverse) and counter updates are never lost.
"""

import logging
import re
import time
from threading import Lock, RLock
from typing import Any, Callable, List, Optional, Set

from pocketcache.domain.interfaces.key_value_store import KeyValueStore
from pocketcache.domain.interfaces.serializer import SerializationError, Serializer
from pocketcache.domain.models.common import (
    ALL_PRODUCTS_KEY,
    ONE_HOUR_MS,
    TTL_EXPIRED,
    TTL_NO_EXPIRY,
    CacheKey,
    EpochMillis,
    TtlMillis,
    category_key,
    product_key,
)
from pocketcache.domain.models.product import Product

logger = logging.getLogger(__name__)

EXPIRY_SUFFIX = "_expiry"
DEFAULT_TTL_MS = ONE_HOUR_MS

_GLOB_CHARS = re.compile(r"[*?\[]")
_INTEGER = re.compile(r"[+-]?\d+")


def current_millis() -> EpochMillis:
    """Wall-clock time in epoch milliseconds."""
    return EpochMillis(int(time.time() * 1000))


def expiry_key(key: str) -> CacheKey:
    return CacheKey(key + EXPIRY_SUFFIX)


def is_expiry_key(key: str) -> bool:
    return key.endswith(EXPIRY_SUFFIX)


def _check_writable(key: str) -> None:
    if is_expiry_key(key):
        raise ValueError(f"Keys ending in '{EXPIRY_SUFFIX}' are reserved for expiry records: {key!r}")


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    value = value.strip()
    return int(value) if _INTEGER.fullmatch(value) else None


class CacheManager:
    """Key/value cache with TTLs, prefix scans and atomic counters."""

    def __init__(
        self,
        store: KeyValueStore,
        serializer: Serializer,
        clock: Optional[Callable[[], int]] = None,
    ):
        """Initializes the cache manager.

        Args:
            store: Storage the cache records live in.
            serializer: Codec used by the typed product helpers.
            clock: Returns the current time in epoch milliseconds.
        """
        self.store = store
        self.serializer = serializer
        self._clock = clock or current_millis
        self._lock = RLock()

    # --- Internal helpers (caller holds the lock) ---

    def _expires_at(self, key: str) -> Optional[int]:
        raw = self.store.get(expiry_key(key))
        expires_at = _parse_int(raw)
        if raw is not None and expires_at is None:
            logger.warning(f"Ignoring corrupt expiry record for key: {key}")
        return expires_at

    def _is_expired(self, key: str, now: int) -> bool:
        expires_at = self._expires_at(key)
        return expires_at is not None and now > expires_at

    def _remove(self, key: str) -> None:
        # Expiry record goes first so it can never outlive its value record
        self.store.remove(expiry_key(key))
        self.store.remove(CacheKey(key))

    def _write(self, key: str, value: str, ttl_ms: Optional[int]) -> None:
        self.store.put(CacheKey(key), value)
        if ttl_ms is not None:
            self.store.put(expiry_key(key), str(self._clock() + int(ttl_ms)))
        else:
            self.store.remove(expiry_key(key))

    def _live_value(self, key: str) -> Optional[str]:
        if self._is_expired(key, self._clock()):
            logger.debug(f"Lazily evicting expired key: {key}")
            self._remove(key)
            return None
        return self.store.get(CacheKey(key))

    # --- Redis-like operations ---

    def set(self, key: str, value: str, ttl_ms: Optional[int] = None) -> None:
        """Stores ``value`` under ``key``.

        With ``ttl_ms`` the key expires ``ttl_ms`` milliseconds from now;
        without it any previous expiry is dropped and the key becomes permanent.

        Raises:
            ValueError: If ``key`` ends in the reserved ``_expiry`` suffix.
        """
        _check_writable(key)
        with self._lock, self.store.transaction():
            self._write(key, value, ttl_ms)
        logger.debug(f"SET {key} ttl={ttl_ms}")

    def get(self, key: str) -> Optional[str]:
        """Returns the value for ``key``, or None if absent or expired.

        An expired key is deleted before the value is looked at.
        """
        with self._lock, self.store.transaction():
            return self._live_value(key)

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, *keys: str) -> None:
        """Removes each key together with its expiry record. Missing keys are ignored.

        Raises:
            ValueError: If any key ends in the reserved ``_expiry`` suffix.
        """
        if not keys:
            return
        for key in keys:
            _check_writable(key)
        with self._lock, self.store.transaction():
            for key in keys:
                self._remove(key)
        logger.debug(f"DEL {', '.join(keys)}")

    def ttl(self, key: str) -> int:
        """Remaining time to live in milliseconds.

        Returns:
            ``-1`` when the key has no expiry, ``-2`` when the expiry has passed
            (the key is not removed here), else the remaining milliseconds.
        """
        with self._lock:
            expires_at = self._expires_at(key)
            if expires_at is None:
                return TTL_NO_EXPIRY
            remaining = expires_at - self._clock()
            return TtlMillis(remaining) if remaining > 0 else TTL_EXPIRED

    def expire(self, key: str, ttl_ms: int) -> bool:
        """Sets a new expiry on an existing key.

        Returns:
            False (and changes nothing) when the key has no live value,
            True once the expiry record has been rewritten.
        """
        _check_writable(key)
        with self._lock, self.store.transaction():
            if self._live_value(key) is None:
                return False
            self.store.put(expiry_key(key), str(self._clock() + int(ttl_ms)))
            return True

    def increment(self, key: str, delta: int = 1) -> int:
        """Atomically adds ``delta`` to the integer stored under ``key``.

        An absent or non-integer value counts as 0. The key's expiry is left
        untouched.
        """
        _check_writable(key)
        with self._lock, self.store.transaction():
            current = self._live_value(key)
            number = _parse_int(current)
            if current is not None and number is None:
                logger.warning(f"Non-integer value under '{key}' treated as 0 for increment")
            new_value = (number or 0) + delta
            self.store.put(CacheKey(key), str(new_value))
            return new_value

    def decrement(self, key: str, delta: int = 1) -> int:
        return self.increment(key, -delta)

    def keys(self, pattern: str = "*") -> List[str]:
        """Lists keys starting with a literal prefix.

        Only prefix matching is supported: trailing ``*`` markers are stripped
        (``"product:*"`` and ``"product:"`` are equivalent, ``"*"`` matches
        everything). Any other glob syntax is rejected. Expiry records are
        never returned; expired keys that have not been swept yet are.

        Raises:
            ValueError: If the pattern uses glob features beyond a trailing ``*``.
        """
        prefix = pattern.rstrip("*")
        if _GLOB_CHARS.search(prefix):
            raise ValueError(f"Only literal prefix patterns are supported, got: {pattern!r}")
        with self._lock:
            all_keys = self.store.all_keys()
        return sorted(k for k in all_keys if k.startswith(prefix) and not is_expiry_key(k))

    def flush_all(self) -> None:
        """Removes every key and expiry record."""
        with self._lock:
            self.store.clear()
        logger.info("Flushed all cache keys.")

    def cleanup_expired_keys(self) -> int:
        """Deletes every key whose expiry has passed.

        Orphaned expiry records (value already gone) are dropped as well.

        Returns:
            The number of expired keys removed.
        """
        with self._lock, self.store.transaction():
            now = self._clock()
            all_keys: Set[str] = self.store.all_keys()
            value_keys = [k for k in all_keys if not is_expiry_key(k)]
            expired = [k for k in value_keys if self._is_expired(k, now)]
            for key in expired:
                self._remove(key)
            orphans = [
                k for k in all_keys
                if is_expiry_key(k) and k[: -len(EXPIRY_SUFFIX)] not in all_keys
            ]
            for key in orphans:
                self.store.remove(CacheKey(key))
        if expired or orphans:
            logger.info(f"Cleanup removed {len(expired)} expired keys and {len(orphans)} orphaned expiry records.")
        else:
            logger.debug("Cleanup found no expired keys.")
        return len(expired)

    # --- Typed helpers for catalog products ---

    def _get_typed(self, key: str, type_hint: Any) -> Optional[Any]:
        payload = self.get(key)
        if payload is None:
            return None
        try:
            return self.serializer.deserialize(payload, type_hint)
        except SerializationError as e:
            logger.warning(f"Discarding unreadable cache payload for '{key}': {e}")
            return None

    def cache_product(self, product: Product, ttl_ms: Optional[int] = DEFAULT_TTL_MS) -> None:
        self.set(product_key(product.id), self.serializer.serialize(product), ttl_ms)

    def get_cached_product(self, product_id: int) -> Optional[Product]:
        return self._get_typed(product_key(product_id), Product)

    def cache_products_by_category(
        self, category: str, products: List[Product], ttl_ms: Optional[int] = DEFAULT_TTL_MS
    ) -> None:
        self.set(category_key(category), self.serializer.serialize(products), ttl_ms)

    def get_cached_products_by_category(self, category: str) -> Optional[List[Product]]:
        return self._get_typed(category_key(category), List[Product])

    def cache_all_products(self, products: List[Product], ttl_ms: Optional[int] = DEFAULT_TTL_MS) -> None:
        self.set(ALL_PRODUCTS_KEY, self.serializer.serialize(products), ttl_ms)

    def get_all_cached_products(self) -> Optional[List[Product]]:
        return self._get_typed(ALL_PRODUCTS_KEY, List[Product])


# --- Process-scoped instance ---
#
# Init/teardown contract: the composition root calls init_cache_manager() once
# at startup, code that needs the shared instance calls get_cache_manager(),
# and shutdown_cache_manager() sweeps expired keys and closes the store.

_instance: Optional[CacheManager] = None
_instance_lock = Lock()


def init_cache_manager(
    store: KeyValueStore,
    serializer: Serializer,
    clock: Optional[Callable[[], int]] = None,
) -> CacheManager:
    """Creates the process-wide CacheManager.

    Raises:
        RuntimeError: If an instance has already been initialized.
    """
    global _instance
    if _instance is None:
        with _instance_lock:
            if _instance is None:
                _instance = CacheManager(store, serializer, clock=clock)
                logger.info(f"Cache manager initialized with {type(store).__name__}.")
                return _instance
    raise RuntimeError("Cache manager already initialized; call shutdown_cache_manager() first.")


def get_cache_manager() -> CacheManager:
    """Returns the process-wide CacheManager.

    Raises:
        RuntimeError: If init_cache_manager() has not been called.
    """
    instance = _instance
    if instance is None:
        raise RuntimeError("Cache manager not initialized; call init_cache_manager() first.")
    return instance


def shutdown_cache_manager() -> None:
    """Sweeps expired keys, closes the store and forgets the instance."""
    global _instance
    with _instance_lock:
        instance, _instance = _instance, None
    if instance is None:
        return
    try:
        instance.cleanup_expired_keys()
    finally:
        instance.store.close()
    logger.info("Cache manager shut down.")
