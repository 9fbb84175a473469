"""Time-boxed local read cache shared by the ledger and the sales log."""

import logging
import time
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60

T = TypeVar("T")


class LocalReadCache:
    """Keyed cache whose entries expire after a fixed TTL.

    Callers never patch cached values in place: every mutation invalidates
    the keys it may have staled and the next read goes to the store.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Optional[Callable[[], float]] = None):
        """Initialize the cache.

        Args:
            ttl_seconds: Lifetime of an entry in seconds
            clock: Monotonic time source, mainly for tests
        """
        if ttl_seconds <= 0:
            raise ValueError("Cache TTL must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: dict[str, tuple[Any, float]] = {}

    def put(self, key: str, value: Any) -> None:
        """Store a value under key, resetting its expiry."""
        self._entries[key] = (value, self._clock() + self.ttl_seconds)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or default on a miss.

        An expired entry counts as a miss and is removed.
        """
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def get_or_load(self, key: str, loader: Callable[[], T]) -> T:
        """Return the cached value or load, store and return a fresh one."""
        sentinel = object()
        value = self.get(key, sentinel)
        if value is not sentinel:
            return value
        logger.debug("Cache miss", extra={"cache_key": key})
        value = loader()
        self.put(key, value)
        return value

    def invalidate(self, prefix: str = "") -> int:
        """Drop every entry whose key starts with prefix.

        Returns:
            Number of entries removed
        """
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug("Cache invalidated", extra={"prefix": prefix, "removed": len(keys)})
        return len(keys)

    def purge_expired(self) -> int:
        """Remove all expired entries. Returns number removed."""
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
