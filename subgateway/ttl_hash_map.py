"""A mapping whose entries expire after a time-to-live.

Expired entries are not removed automatically; call :meth:`TtlHashMap.cleanup`
to drop them and release memory.
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar, Union

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

#: Entries never expire when no TTL is given.
DEFAULT_TTL: Optional[float] = None


class TtlHashMap(Generic[K, V]):
    """A hash map with entries that expire ``ttl`` seconds after insertion."""

    def __init__(
        self,
        ttl: Union[float, timedelta, None] = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(ttl, timedelta):
            ttl = ttl.total_seconds()
        if ttl is not None and ttl < 0:
            raise ValueError("ttl must not be negative")
        self._ttl = ttl
        self._clock = clock
        self._inner: Dict[K, Tuple[float, V]] = {}

    @property
    def ttl(self) -> Optional[float]:
        """The time-to-live in seconds, or None for entries that never expire."""
        return self._ttl

    def _alive(self, timestamp: float) -> bool:
        if self._ttl is None:
            return True
        return self._clock() - timestamp < self._ttl

    def insert(self, key: K, value: V) -> Optional[V]:
        """Insert ``value`` under ``key``; return the previous live value, if any."""
        previous = self._inner.get(key)
        self._inner[key] = (self._clock(), value)
        if previous is not None and self._alive(previous[0]):
            return previous[1]
        return None

    def get(self, key: K) -> Optional[V]:
        """Return the live value for ``key``, or None if missing or expired."""
        entry = self._inner.get(key)
        if entry is not None and self._alive(entry[0]):
            return entry[1]
        return None

    def remove(self, key: K) -> Optional[V]:
        """Remove ``key``; return its value if it had not expired."""
        entry = self._inner.pop(key, None)
        if entry is not None and self._alive(entry[0]):
            return entry[1]
        return None

    def __len__(self) -> int:
        return sum(1 for timestamp, _ in self._inner.values() if self._alive(timestamp))

    def __contains__(self, key: object) -> bool:
        entry = self._inner.get(key)  # type: ignore[arg-type]
        return entry is not None and self._alive(entry[0])

    def is_empty(self) -> bool:
        """True if the map holds no live entries."""
        return len(self) == 0

    def len_all(self) -> int:
        """Number of stored entries, expired ones included."""
        return len(self._inner)

    def clear(self) -> None:
        """Remove every entry."""
        self._inner.clear()

    def cleanup(self) -> None:
        """Drop expired entries and compact the underlying storage."""
        self._inner = {
            key: entry for key, entry in self._inner.items() if self._alive(entry[0])
        }