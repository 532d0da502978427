"""
In-memory TTL cache for composed API payloads.

Expiry is checked on every read, so an expired value is never handed back.
The full sweep only runs once the cache has grown past SWEEP_THRESHOLD;
below that, expired entries linger until someone reads them.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


SWEEP_THRESHOLD = 200


class TTLCache:
    """Process-wide key -> value store with per-entry expiry."""

    def __init__(self, time_func: Callable[[], float] = time.monotonic, sweep_threshold: int = SWEEP_THRESHOLD) -> None:
        self._time_func = time_func
        self._sweep_threshold = sweep_threshold
        self._lock = threading.Lock()
        # key -> (expires_at, value)
        self._storage: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._storage.get(key)
            if item is None:
                return None
            expires_at, value = item
            if self._time_func() > expires_at:
                del self._storage[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._storage[key] = (self._time_func() + ttl_seconds, value)
            self._sweep()

    def _sweep(self) -> None:
        # caller holds the lock
        if len(self._storage) < self._sweep_threshold:
            return
        now = self._time_func()
        expired = [k for k, (expires_at, _) in self._storage.items() if now > expires_at]
        for k in expired:
            del self._storage[k]

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._storage)

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()


__all__ = ["TTLCache", "SWEEP_THRESHOLD"]
