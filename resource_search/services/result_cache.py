"""Bounded, time-expiring in-memory cache for search result pages.

NOTE: ResultCache is an in-process OrderedDict protected by threading.Lock.
In a multi-worker deployment each process holds its own cache, so a mutation
handled by one worker only invalidates that worker's pages; other workers
serve their cached pages until the TTL runs out.
"""

import json
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Any

from resource_search.core.time import to_naive_utc
from resource_search.services.text_normalizer import normalize

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_CAPACITY = 1000


@dataclass
class CacheEntry:
    """A cached value and the monotonic time it stops being served."""

    key: str
    value: Any
    expires_at: float


class ResultCache:
    """Thread-safe key/value store with a fixed TTL and an entry cap.

    - get() treats expired entries as misses and drops them (lazy expiry)
    - set() evicts the oldest-inserted entry when a new key would exceed capacity
    - invalidate()/invalidate_all() remove one or every entry immediately

    invalidate_all() also advances a generation counter. A caller that reads
    generation() before loading data and passes it to set() has its write
    dropped if an invalidation happened in between, so a page computed from
    pre-mutation data cannot repopulate the cache after the mutation cleared it.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = Lock()
        self._generation = 0

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss or an expired entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                logger.debug("Cache entry expired: %s", key)
                return None
            return entry.value

    def generation(self) -> int:
        """Current invalidation generation; changes on every invalidate_all()."""
        with self._lock:
            return self._generation

    def set(self, key: str, value: Any, generation: int | None = None) -> bool:
        """Insert or overwrite a value; overwriting restarts its TTL.

        With ``generation``, the write is skipped (returning False) when
        invalidate_all() has run since that generation was read.
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("Dropped stale cache write: %s", key)
                return False
            expires_at = self._clock() + self.ttl_seconds
            if key in self._entries:
                self._entries.pop(key)
            else:
                while len(self._entries) >= self.capacity:
                    evicted_key, _ = self._entries.popitem(last=False)
                    logger.debug("Cache full, evicted %s", evicted_key)
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=expires_at)
            return True

    def invalidate(self, key: str) -> None:
        """Drop a single entry if present."""
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_all(self) -> int:
        """Drop every entry. Returns how many were resident."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._generation += 1
        if count:
            logger.debug("Cache cleared (%d entries)", count)
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def make_search_key(
    query: str | None,
    limit: int,
    cursor_created_before: datetime | None,
    type_filter: str | None,
) -> str:
    """Deterministic cache key for one set of effective search parameters.

    The query is compared in normalized form, so "Python " and "python" share
    a key. Components are JSON-encoded so no value can bleed into another.
    """
    cursor = to_naive_utc(cursor_created_before).isoformat() if cursor_created_before else ""
    parts = [normalize(query or ""), limit, cursor, type_filter or ""]
    return "search:" + json.dumps(parts, ensure_ascii=False, separators=(",", ":"))


def make_resource_key(resource_id: int) -> str:
    """Cache key for a single-resource lookup."""
    return f"resource:{resource_id}"
