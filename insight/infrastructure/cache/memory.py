# ==============================================================================
# In-Memory Cache Implementation
# ==============================================================================
"""
Process-local implementation of the Cache interface.

Used when Valkey is not configured, and in tests. Each instance owns its
own storage; there is no module-level cache table.
"""

import copy
import fnmatch
import threading
import time
from collections.abc import Callable

from insight.base import Cache

# Seconds between sweeps of expired entries
DEFAULT_CHECK_PERIOD = 60.0


class MemoryCache(Cache):
    """
    Dict-backed cache with per-key expiry.

    Expired entries are dropped on access, and writes sweep out every expired
    entry at most once per check period. Values are deep-copied on the way in
    and out so callers never share mutable state through the cache.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        check_period: float = DEFAULT_CHECK_PERIOD,
    ):
        """
        Initialize the cache.

        Args:
            clock: Monotonic time source in seconds (injectable for tests)
            check_period: Minimum seconds between expiry sweeps
        """
        self._clock = clock
        self._check_period = check_period
        self._next_sweep = clock() + check_period
        self._data: dict[str, tuple[dict, float | None]] = {}
        self._lock = threading.Lock()

    def _sweep(self, now: float) -> None:
        expired = [
            key
            for key, (_, expires_at) in self._data.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self._check_period

    def _live(self, key: str) -> dict | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def get(self, key: str) -> dict | None:
        with self._lock:
            value = self._live(key)
            return copy.deepcopy(value) if value is not None else None

    def set(self, key: str, value: dict, ttl_seconds: int | None = None) -> None:
        now = self._clock()
        expires_at = now + ttl_seconds if ttl_seconds is not None else None
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            self._data[key] = (copy.deepcopy(value), expires_at)

    def delete(self, key: str) -> bool:
        with self._lock:
            found = self._live(key) is not None
            self._data.pop(key, None)
            return found

    def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            matched = [k for k in list(self._data) if fnmatch.fnmatchcase(k, pattern)]
            deleted = sum(1 for k in matched if self._live(k) is not None)
            for key in matched:
                self._data.pop(key, None)
            return deleted

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for k in list(self._data) if self._live(k) is not None)
