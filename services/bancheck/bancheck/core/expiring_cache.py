"""Small in-memory cache with a per-entry TTL.

Entries carry an absolute monotonic expiry. Expired entries are dropped when
they are read; there is no background sweeper. Size is bounded in practice by
the number of players the server has seen within one TTL window.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")

MIN_TTL_SECONDS = 1.0


@dataclass(frozen=True)
class _Entry(Generic[V]):
    value: V
    expires_at: float


class ExpiringCache(Generic[K, V]):
    """Thread-safe key -> value cache with a fixed TTL per entry."""

    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = max(MIN_TTL_SECONDS, float(ttl_seconds))
        self._clock = clock
        self._entries: dict[K, _Entry[V]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: K) -> tuple[V | None, bool]:
        """Get a value.

        Returns:
            (value, True) while the entry is live, (None, False) if it is
            missing or expired. An expired entry is removed.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return None, False
            return entry.value, True

    def set(self, key: K, value: V) -> None:
        """Set a value, resetting its expiry to now + TTL."""
        entry = _Entry(value=value, expires_at=self._clock() + self._ttl)
        with self._lock:
            self._entries[key] = entry

    def remove(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
