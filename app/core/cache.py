"""
Short-lived in-memory result cache for external-capability calls.

Entries expire after a fixed TTL. Once capacity is reached the
least-recently-inserted entry is evicted. The clock is injectable so tests
can control expiry without waiting.
"""

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_CAPACITY = 1000


def fingerprint(*parts: str) -> str:
    """Stable content key: sha256 over the parts, separated so ("ab", "c") != ("a", "bc")."""
    digest = hashlib.sha256()
    for part in parts:
        digest.update((part or "").encode("utf-8"))
        digest.update(b"\x1f")
    return digest.hexdigest()


class TTLCache(Generic[V]):
    """
    Thread-safe TTL cache with insertion-order eviction.

    Args:
        ttl_seconds: Lifetime of an entry
        capacity: Maximum number of live entries
        clock: Monotonic time source, defaults to time.monotonic
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        capacity: int = DEFAULT_CAPACITY,
        clock: Optional[Callable[[], float]] = None,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self._clock = clock or time.monotonic
        self._entries: "OrderedDict[str, Tuple[float, V]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, value = item
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: V) -> None:
        with self._lock:
            if key in self._entries:
                # Re-inserting refreshes both expiry and insertion order
                del self._entries[key]
            self._entries[key] = (self._clock() + self.ttl_seconds, value)
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache full (%d); evicted %s", self.capacity, evicted[:12])

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for k in expired:
                del self._entries[k]
            return len(self._entries)
