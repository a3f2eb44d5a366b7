"""Time-based expiry helpers: read-time age filtering and a small TTL cache."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Iterable, List, Mapping, Optional, TypeVar

K = TypeVar("K")
V = TypeVar("V")

HOUR_MS = 60 * 60 * 1000


def now_ms() -> int:
    """Current wall-clock instant in epoch milliseconds."""
    return int(time.time() * 1000)


def record_age_ms(record: Mapping[str, Any], now: int) -> Optional[float]:
    """Age of a persisted record, or None when it carries no usable timestamp."""
    timestamp = record.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        return None
    return now - timestamp


def filter_by_age(
    records: Iterable[Mapping[str, Any]], now: int, window_ms: int
) -> List[Mapping[str, Any]]:
    """Keep records strictly younger than ``window_ms`` at instant ``now``.

    Order is preserved. Records without a numeric timestamp are dropped,
    mirroring how an undefined timestamp never satisfies the age comparison.
    """
    kept: List[Mapping[str, Any]] = []
    for record in records:
        age = record_age_ms(record, now)
        if age is not None and age < window_ms:
            kept.append(record)
    return kept


@dataclass
class CacheEntry(Generic[V]):
    """Store cached value with expiration metadata."""

    value: V
    expires_at: float


class TTLCache(Generic[K, V]):
    """Very small utility cache for curriculum lookups."""

    def __init__(
        self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.time
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: Dict[K, CacheEntry[V]] = {}

    def set(self, key: K, value: V) -> None:
        """Insert a value into the cache."""
        self._data[key] = CacheEntry(value=value, expires_at=self._clock() + self.ttl_seconds)

    def get(self, key: K) -> Optional[V]:
        """Retrieve a cached value if it has not expired."""
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at < self._clock():
            self._data.pop(key, None)
            return None
        return entry.value

    def clear(self) -> None:
        """Remove all entries."""
        self._data.clear()
