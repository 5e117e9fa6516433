"""
Two-tier TTL cache for API responses and resolved image paths.

Entries live in an in-process dict and are written through to the
persistent key-value store, so a restarted process still avoids a
fresh OpenSky request for data that is under a minute old.

Design notes:
- Every entry carries its own TTL; expiry is checked on read and an
  expired entry is removed from both tiers at that point.
- A key registry (stored next to the entries) lists every live key.
  Bulk clear and size work off the registry instead of scanning the
  store, which also holds history and settings under other keys.
- Cache failures are never fatal: a broken cache means an extra API
  call, not a failed detection cycle. Errors are logged and the
  operation degrades to a miss.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from overhead.config import config
from overhead.errors import CacheError, StorageError
from overhead.storage import StorageService

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached value with write time and lifetime (seconds)."""
    data: Any
    ttl_seconds: float
    timestamp: float = field(default_factory=time.time)

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_expired(self, now: float) -> bool:
        return self.age(now) > self.ttl_seconds

    def to_dict(self) -> dict:
        return {
            'data': self.data,
            'timestamp': self.timestamp,
            'ttl_seconds': self.ttl_seconds,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> 'CacheEntry':
        try:
            return cls(
                data=raw['data'],
                ttl_seconds=float(raw['ttl_seconds']),
                timestamp=float(raw['timestamp']),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CacheError('Malformed cache entry', e) from e


class TTLCache:
    """
    Thread-safe key -> (value, timestamp, ttl) cache.

    Memory tier in front of a StorageService; the storage tier is the
    source of truth for the key registry.
    """

    def __init__(
        self,
        storage: Optional[StorageService] = None,
        key_prefix: Optional[str] = None,
        registry_key: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage or StorageService()
        self.key_prefix = key_prefix or config.cache.key_prefix
        self.registry_key = registry_key or config.cache.registry_key
        self._clock = clock

        self._memory: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

        # Statistics
        self._hits = 0
        self._misses = 0

    def _prefixed(self, key: str) -> str:
        return f'{self.key_prefix}{key}'

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def cache_data(self, key: str, data: Any, ttl_seconds: float) -> None:
        """Store data under key for ttl_seconds."""
        entry = CacheEntry(data=data, ttl_seconds=ttl_seconds, timestamp=self._clock())

        with self._lock:
            self._memory[key] = entry
            try:
                self.storage.store_data(self._prefixed(key), entry.to_dict())
                self._add_key_to_registry(key)
            except (StorageError, CacheError) as e:
                logger.error(f'Error caching data for key {key}: {e}')
                return

        logger.debug(f'Cached data for key: {key} (ttl={ttl_seconds}s)')

    def get_cached_data(self, key: str) -> Optional[Any]:
        """
        Get cached data if present and not expired.

        Returns None on miss. An expired entry is removed.
        """
        with self._lock:
            entry = self._load_entry(key)

            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self._clock()):
                logger.debug(f'Cache expired for key: {key}')
                self._misses += 1
                self.remove_cache_item(key)
                return None

            self._hits += 1
            return entry.data

    def is_cache_valid(self, key: str) -> bool:
        """True if key has an unexpired entry. Never removes anything."""
        with self._lock:
            entry = self._load_entry(key)
            return entry is not None and not entry.is_expired(self._clock())

    def remove_cache_item(self, key: str) -> None:
        with self._lock:
            self._memory.pop(key, None)
            try:
                self.storage.remove_data(self._prefixed(key))
                self._remove_key_from_registry(key)
            except (StorageError, CacheError) as e:
                logger.error(f'Error removing cache item {key}: {e}')
                return

        logger.debug(f'Removed cache item: {key}')

    def clear_cache(self) -> None:
        """Remove every registered entry."""
        with self._lock:
            self._memory.clear()
            try:
                keys = self._get_registry()
                if not keys:
                    return
                self.storage.multi_remove(self._prefixed(k) for k in keys)
                self.storage.store_data(self.registry_key, [])
            except (StorageError, CacheError) as e:
                logger.error(f'Error clearing cache: {e}')
                return

        logger.info(f'Cleared cache with {len(keys)} entries')

    def get_cache_size(self) -> int:
        """Number of registered keys (expired-but-unread entries included)."""
        try:
            return len(self._get_registry())
        except (StorageError, CacheError) as e:
            logger.error(f'Error getting cache size: {e}')
            return 0

    def keys(self) -> List[str]:
        try:
            return self._get_registry()
        except (StorageError, CacheError) as e:
            logger.error(f'Error listing cache keys: {e}')
            return []

    @property
    def stats(self) -> dict:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                'memory_entries': len(self._memory),
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / lookups if lookups > 0 else 0,
            }

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _load_entry(self, key: str) -> Optional[CacheEntry]:
        """Memory tier first, then storage (promoting into memory)."""
        entry = self._memory.get(key)
        if entry is not None:
            return entry

        try:
            raw = self.storage.get_data(self._prefixed(key))
            if raw is None:
                return None
            entry = CacheEntry.from_dict(raw)
        except (StorageError, CacheError) as e:
            logger.error(f'Error retrieving cached data for key {key}: {e}')
            return None

        self._memory[key] = entry
        return entry

    def _get_registry(self) -> List[str]:
        keys = self.storage.get_data(self.registry_key)
        if keys is None:
            return []
        if not isinstance(keys, list):
            raise CacheError(f'Cache key registry is corrupt: {type(keys).__name__}')
        return keys

    def _add_key_to_registry(self, key: str) -> None:
        keys = self._get_registry()
        if key not in keys:
            keys.append(key)
            self.storage.store_data(self.registry_key, keys)

    def _remove_key_from_registry(self, key: str) -> None:
        keys = self._get_registry()
        if key in keys:
            self.storage.store_data(self.registry_key, [k for k in keys if k != key])
