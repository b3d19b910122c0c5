"""Session-owned key/value cache.

Replaces ambient global maps: a :class:`SessionCache` belongs to the
session that created it and is handed to the components that need it.
Entries never expire; they live until :meth:`SessionCache.invalidate`
is called or the owning session goes away.
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class SessionCache(Generic[K, V]):
    """Thread-safe cache.

    Concurrent misses on one key may both compute a value; the map itself
    is never corrupted.  :meth:`get_or_compute` keeps the first value
    stored, :meth:`put` always overwrites.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._data: dict[K, V] = {}

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def lookup(self, key: K) -> tuple[bool, V | None]:
        """Return ``(found, value)`` so that a cached ``None`` is distinguishable."""
        with self._lock:
            if key in self._data:
                return True, self._data[key]
            return False, None

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._data[key] = value

    def get_or_compute(self, key: K, compute: Callable[[K], V | None]) -> V | None:
        """Return the cached value for *key*, computing it on a miss.

        *compute* runs outside the lock.  A ``None`` result is returned
        but not stored, so the next call tries again.
        """
        with self._lock:
            if key in self._data:
                return self._data[key]
        value = compute(key)
        if value is None:
            return None
        with self._lock:
            return self._data.setdefault(key, value)

    def invalidate(self, key: K | None = None) -> None:
        """Drop one entry, or every entry when *key* is None."""
        with self._lock:
            if key is None:
                self._data.clear()
            else:
                self._data.pop(key, None)
