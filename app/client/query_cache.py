"""
Client data-fetching layer: cached reads and retried writes.

Reads are served from cache while fresh (stale_time, 5 minutes), refetched
once stale, and evicted gc_time (10 minutes) after they were fetched whether
or not anyone still reads them. Reads and mutations are retried once before
the error reaches the caller.
"""

import logging
import time
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

STALE_TIME_SEC = 300.0
GC_TIME_SEC = 600.0
RETRIES = 1


@dataclass
class CacheEntry:
    data: Any
    fetched_at: float


def _as_tuple(key: Hashable) -> tuple:
    return key if isinstance(key, tuple) else (key,)


class QueryCache:
    """Keyed cache of query results. clock is injectable for tests."""

    def __init__(
        self,
        stale_time: float = STALE_TIME_SEC,
        gc_time: float = GC_TIME_SEC,
        retries: int = RETRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stale_time = stale_time
        self.gc_time = gc_time
        self.retries = retries
        self.clock = clock
        self._entries: dict[tuple, CacheEntry] = {}

    def __contains__(self, key: Hashable) -> bool:
        self.collect()
        return _as_tuple(key) in self._entries

    def __len__(self) -> int:
        self.collect()
        return len(self._entries)

    def _run(self, fn: Callable[[], T], label: str) -> T:
        attempt = 0
        while True:
            try:
                return fn()
            except Exception as e:
                if attempt >= self.retries:
                    raise
                attempt += 1
                logger.info("Retrying %s after error (%s/%s): %s", label, attempt, self.retries, e)

    def collect(self) -> int:
        """Evict entries older than gc_time. Returns how many were dropped."""
        now = self.clock()
        expired = [k for k, e in self._entries.items() if now - e.fetched_at >= self.gc_time]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def is_stale(self, key: Hashable) -> bool:
        entry = self._entries.get(_as_tuple(key))
        return entry is None or self.clock() - entry.fetched_at >= self.stale_time

    def get(self, key: Hashable) -> Any:
        """Cached data for key (fresh or stale), or None."""
        self.collect()
        entry = self._entries.get(_as_tuple(key))
        return entry.data if entry is not None else None

    def fetch(self, key: Hashable, fetcher: Callable[[], T], force: bool = False) -> T:
        """Return fresh cached data for key, or run fetcher (retried once) and cache it."""
        self.collect()
        k = _as_tuple(key)
        entry = self._entries.get(k)
        if entry is not None and not force and not self.is_stale(k):
            return entry.data
        data = self._run(fetcher, f"query {k!r}")
        self._entries[k] = CacheEntry(data=data, fetched_at=self.clock())
        return data

    def mutate(
        self,
        mutation: Callable[[], T],
        invalidate: Iterable[Hashable] = (),
    ) -> T:
        """Run mutation (retried once), then drop cached queries under each prefix."""
        result = self._run(mutation, "mutation")
        for prefix in invalidate:
            self.invalidate(prefix)
        return result

    def invalidate(self, prefix: Hashable) -> int:
        """Drop every key equal to or starting with prefix. Returns the count."""
        p = _as_tuple(prefix)
        doomed = [k for k in self._entries if k[: len(p)] == p]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()
