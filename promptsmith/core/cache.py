"""Process-local TTL caches for pipeline results.

Both pipeline caches go through the ``CacheStore`` protocol so callers can
inject a shared store later without touching pipeline logic.
"""

import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    """Key/value store with time-based expiry."""

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or expired entry."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a value under key for the store's TTL."""
        ...

    def evict(self, key: str) -> None:
        """Drop a key if present."""
        ...


class MemoryCache:
    """Bounded in-memory cache with lazy TTL expiry.

    Entries are kept as ``(stored_at, value)``. When the cache is full the
    oldest entry is dropped.
    """

    def __init__(
        self,
        ttl: timedelta,
        max_entries: int = 500,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Initialize the cache.

        Args:
            ttl: How long an entry stays valid
            max_entries: Upper bound on stored entries
            clock: Time source (injectable for tests)
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[datetime, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        # Re-inserting moves the key to the newest position
        self._entries.pop(key, None)
        self._entries[key] = (self._clock(), value)

        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def evict_expired(self) -> int:
        """Remove every expired entry. Returns how many were dropped."""
        now = self._clock()
        expired = [
            key for key, (stored_at, _) in self._entries.items()
            if now - stored_at >= self.ttl
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


def fingerprint(*parts: str) -> str:
    """Deterministic cache key for a tuple of inputs."""
    joined = "\x1f".join(parts)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()
