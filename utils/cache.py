"""
In-memory TTL cache for admin dashboard aggregates.

Process-local; each worker keeps its own copy. Mutations that change the
aggregates call clear() so admins never wait out the TTL after their own
changes.
"""

import threading
import time

import structlog
from cachetools import TTLCache

logger = structlog.get_logger(__name__)


class StatsCache:
    """
    cachetools.TTLCache behind a lock.

    The TTL is read from config on every call; when it changes the store is
    rebuilt empty. A TTL of zero or less disables caching.
    """

    def __init__(self, maxsize=64, timer=time.monotonic):
        self.maxsize = maxsize
        self.timer = timer
        self._lock = threading.Lock()
        self._store = None

    def _cache(self, ttl):
        # Caller holds the lock
        if self._store is None or self._store.ttl != ttl:
            self._store = TTLCache(maxsize=self.maxsize, ttl=ttl, timer=self.timer)
        return self._store

    def get(self, key, ttl):
        if ttl <= 0:
            return None
        with self._lock:
            value = self._cache(ttl).get(key)
        if value is not None:
            logger.debug('Cache hit', cache_key=key)
        return value

    def set(self, key, value, ttl):
        if ttl <= 0:
            return
        with self._lock:
            self._cache(ttl)[key] = value

    def delete(self, key):
        with self._lock:
            if self._store is None:
                return False
            return self._store.pop(key, None) is not None

    def clear(self):
        with self._lock:
            if self._store is not None:
                self._store.clear()


admin_cache = StatsCache()
