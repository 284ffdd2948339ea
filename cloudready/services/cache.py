"""In-process cache for user lookups keyed by id or username."""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class UserCache:
    """Thread-safe TTL cache.

    Key convention: ``{kind}:{value}``, e.g. ``id:42`` or ``username:alice``.

    Every invalidation bumps a generation counter. `get_or_load` only stores a
    loaded value if no invalidation happened while the loader ran, so a lookup
    racing with a delete cannot re-insert the deleted record.
    """

    def __init__(self, ttl_seconds: int = 600, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Dict[str, Any]] = {}  # key -> {"value": Any, "ts": float}
        self._generation = 0

    def get(self, key: str) -> Optional[Any]:
        """Get cached value. Returns None on miss or expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if (self._clock() - entry["ts"]) >= self._ttl:
                del self._entries[key]
                return None
            return entry["value"]

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = {"value": value, "ts": self._clock()}

    def delete(self, *keys: str) -> None:
        """Evict the given keys."""
        with self._lock:
            self._generation += 1
            for key in keys:
                self._entries.pop(key, None)

    def clear(self) -> None:
        """Evict everything."""
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def get_or_load(self, key: str, loader: Callable[[], Optional[Any]]) -> Optional[Any]:
        """Return the cached value or call *loader*, caching a non-None result.

        Absent results are not cached.
        """
        with self._lock:
            generation = self._generation
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"User cache hit: {key}")
            return cached

        logger.debug(f"User cache miss: {key}")
        value = loader()
        if value is None:
            return None

        with self._lock:
            if self._generation == generation:
                self._entries[key] = {"value": value, "ts": self._clock()}
        return value

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_user_cache: Optional[UserCache] = None


def init_user_cache(ttl_seconds: int = 600) -> UserCache:
    """Initialize the global UserCache (called during app startup)."""
    global _user_cache
    _user_cache = UserCache(ttl_seconds=ttl_seconds)
    logger.info("UserCache initialized (ttl=%ss)", ttl_seconds)
    return _user_cache


def get_user_cache() -> UserCache:
    """Return the global UserCache instance (lazy-init if needed)."""
    global _user_cache
    if _user_cache is None:
        _user_cache = UserCache()
        logger.warning("UserCache accessed before init, using default TTL")
    return _user_cache
