from collections.abc import Callable
from threading import RLock
from time import monotonic
from typing import Any
from typing import Protocol


class Cache(Protocol):
    """Key-value store with per-entry expiry, shared by the card services."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_ms: int) -> None: ...


class InMemoryTTLCache:
    """Process-local cache; entries expire `ttl_ms` after they were written."""

    def __init__(
        self, max_entries: int = 1024, clock: Callable[[], float] = monotonic
    ) -> None:
        self.max_entries = max(1, max_entries)
        self._clock = clock
        # key -> (expires_at, value)
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = RLock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None

            return value

    def set(self, key: str, value: Any, ttl_ms: int) -> None:
        now = self._clock()
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict(now)
            self._entries[key] = (now + ttl_ms / 1000, value)

    def _evict(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

        # Still full: drop the entry closest to expiry.
        if len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda key: self._entries[key][0])
            del self._entries[oldest]
