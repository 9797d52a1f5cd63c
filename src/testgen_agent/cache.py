"""Expiring key/value cache with a background sweep."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Hashable, TypeVar

from .scheduler import PeriodicTask

logger = logging.getLogger(__name__)

V = TypeVar("V")

DEFAULT_TTL_SECONDS = 5 * 60
SWEEP_INTERVAL_SECONDS = 60


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    timestamp: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class TTLCache:
    """Thread-safe TTL cache.

    Entries are dropped lazily on ``get``/``has`` and in bulk by a sweep that runs
    every ``sweep_interval`` seconds once ``start()`` is called. There is no size
    bound other than expiry.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        autostart: bool = False,
    ) -> None:
        if default_ttl < 0:
            raise ValueError(f"default_ttl must be >= 0, got {default_ttl}")
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry[Any]] = {}
        self._lock = threading.Lock()
        self._sweeper = PeriodicTask("ttl-cache-sweep", sweep_interval, self.sweep)
        if autostart:
            self.start()

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0, got {ttl}")
        with self._lock:
            self._entries[key] = CacheEntry(value=value, timestamp=self._clock(), ttl=ttl)

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            entry = self._live_entry(key)
            return default if entry is None else entry.value

    def has(self, key: Hashable) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def __contains__(self, key: Hashable) -> bool:
        return self.has(key)

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet swept."""
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def sweep(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Cache sweep removed %d expired entries", len(expired))
        return len(expired)

    def start(self) -> None:
        self._sweeper.start()

    def close(self) -> None:
        self._sweeper.stop()

    def __enter__(self) -> "TTLCache":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _live_entry(self, key: Hashable) -> CacheEntry[Any] | None:
        # Caller holds the lock.
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            return None
        return entry
