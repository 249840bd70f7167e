"""MemoryCache — thread-safe TTL cache with bounded size, backed by cachetools."""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from typing import Any

from cachetools import TLRUCache


class MemoryCache:
    """In-process cache implementing the ``Cache`` protocol.

    Parameters:
        max_entries: Least-recently-used live entries are evicted beyond this.
        default_ttl: Seconds an entry lives when ``get_or_set`` passes no ttl.
            None means entries never expire.
        clock: Monotonic time source; injectable for tests.

    Entries carry their own ttl, so requests with different ``cache_ttl``
    share one store. The factory runs outside the lock, so two threads
    missing the same key may both compute it; the last writer wins.
    """

    def __init__(
        self,
        *,
        max_entries: int = 1024,
        default_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: TLRUCache[str, tuple[float | None, Any]] = TLRUCache(
            maxsize=max_entries, ttu=_time_to_use, timer=clock
        )
        self._lock = threading.Lock()
        self._default_ttl = default_ttl

    def get_or_set(self, key: str, factory: Callable[[], Any], ttl: float | None = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
        if entry is not None:
            return entry[1]

        value = factory()
        effective_ttl = ttl if ttl is not None else self._default_ttl
        with self._lock:
            self._entries[key] = (effective_ttl, value)
        return value

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return isinstance(key, str) and key in self._entries

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)


def _time_to_use(key: str, entry: tuple[float | None, Any], now: float) -> float:
    ttl = entry[0]
    return math.inf if ttl is None else now + ttl
