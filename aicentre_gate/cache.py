"""
TTL Cache
=========
Bounded in-memory cache with per-entry expiry.

Replaces ad hoc module-level token caches: callers receive a cache instance
explicitly, and tests inject a fake clock to drive expiry.
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)


class TTLCache:
    """
    In-memory key/value cache with a capacity bound and time-to-live.

    Entries are invisible once expired and are purged lazily. When the cache
    is full, the least recently written entry is evicted.
    """

    def __init__(
        self,
        max_entries: int = 100,
        ttl_seconds: float = 1500,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            max_entries: Maximum number of live entries
            ttl_seconds: Default lifetime of an entry
            clock: Monotonic time source in seconds
        """
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or ``default`` if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return default
            return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds`` (default TTL if omitted)."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._purge_expired()
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("ttl_cache_evicted", key=evicted)
            self._entries[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._entries)

    def _purge_expired(self) -> None:
        """Remove expired entries. Caller holds the lock."""
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
