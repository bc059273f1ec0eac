# grocery_inventory/cache.py
"""
In-process TTL cache.

Caches are passed to the services that use them; nothing in the package keeps
a module-level cache. The clock is injectable so expiry can be tested without
sleeping.
"""
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

DEFAULT_TTL = 30


class TTLCache:
    """Key/value cache whose entries expire ``ttl`` seconds after being set."""

    def __init__(self, default_ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            default_ttl: Lifetime in seconds for entries set without a ttl
            clock: Callable returning the current time in seconds
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return default

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self._misses += 1
                return default

            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        lifetime = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = (value, self._clock() + lifetime)

    def delete(self, key: str) -> bool:
        """Remove one key; returns whether it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``.

        Returns:
            Number of keys removed
        """
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def flush(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                'hits': self._hits,
                'misses': self._misses,
                'keys': len(self._entries),
            }

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() < entry[1]


class NullCache:
    """Cache that stores nothing; every lookup misses."""

    def get(self, key: str, default: Any = None) -> Any:
        return default

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        pass

    def delete(self, key: str) -> bool:
        return False

    def invalidate_prefix(self, prefix: str) -> int:
        return 0

    def flush(self) -> None:
        pass

    def stats(self) -> Dict[str, int]:
        return {'hits': 0, 'misses': 0, 'keys': 0}

    def __contains__(self, key: str) -> bool:
        return False
