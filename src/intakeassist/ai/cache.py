"""Memoization of accepted suggestions per distinct application snapshot."""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable

from ..models import ApplicationData, SuggestionResult

__all__ = [
    "SuggestionCache",
    "SuggestionCacheEntry",
    "SuggestionCacheStats",
    "compute_cache_key",
]

LOGGER = logging.getLogger(__name__)


def compute_cache_key(data: ApplicationData) -> str:
    """Derive the cache key for ``data``.

    The key digests the canonical JSON of the whole snapshot, so any field
    difference, whitespace included, yields a different key.
    """

    return hashlib.sha256(data.canonical_json().encode("utf-8")).hexdigest()


@dataclass(slots=True)
class SuggestionCacheEntry:
    """A stored suggestion with bookkeeping used by the optional bounds."""

    result: SuggestionResult
    created_at: float
    accessed_at: float
    access_count: int = 0

    def touch(self, now: float) -> None:
        self.accessed_at = now
        self.access_count += 1

    def is_expired(self, ttl_seconds: float, now: float) -> bool:
        if ttl_seconds <= 0:
            return False
        return now - self.created_at > ttl_seconds


@dataclass(slots=True)
class SuggestionCacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    invalidations: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        total = self.total_requests
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "invalidations": self.invalidations,
            "total_requests": self.total_requests,
            "hit_rate": self.hit_rate,
        }


class SuggestionCache:
    """Thread-safe store of suggestions keyed by :func:`compute_cache_key`.

    With the default ``max_entries=0`` and ``ttl_seconds=0`` entries live for
    the life of the process and a hit always returns the stored result, even
    if the applicant edited their drafts since. Positive values turn on LRU
    eviction and age-based expiry respectively.
    """

    def __init__(
        self,
        *,
        max_entries: int = 0,
        ttl_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_entries = max(0, int(max_entries))
        self._ttl_seconds = max(0.0, float(ttl_seconds))
        self._clock = clock
        self._entries: OrderedDict[str, SuggestionCacheEntry] = OrderedDict()
        self._lock = threading.RLock()
        self._stats = SuggestionCacheStats()

    @property
    def stats(self) -> SuggestionCacheStats:
        return self._stats

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def get(self, key: str) -> SuggestionResult | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None

            now = self._clock()
            if entry.is_expired(self._ttl_seconds, now):
                del self._entries[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                LOGGER.debug("Suggestion cache entry %s expired", key[:8])
                return None

            entry.touch(now)
            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry.result

    def set(self, key: str, result: SuggestionResult) -> None:
        """Store ``result``; an existing entry for ``key`` is overwritten."""

        with self._lock:
            now = self._clock()
            if key in self._entries:
                self._entries[key] = SuggestionCacheEntry(result=result, created_at=now, accessed_at=now)
                self._entries.move_to_end(key)
                return

            if self._max_entries > 0:
                while len(self._entries) >= self._max_entries:
                    evicted_key, _ = self._entries.popitem(last=False)
                    self._stats.evictions += 1
                    LOGGER.debug("Evicted suggestion cache entry %s", evicted_key[:8])

            self._entries[key] = SuggestionCacheEntry(result=result, created_at=now, accessed_at=now)

    def invalidate(self, key: str) -> bool:
        with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._stats.invalidations += 1
            return True

    def clear(self) -> int:
        """Drop every entry and return how many were removed."""

        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            if count:
                LOGGER.debug("Cleared %d suggestion cache entr%s", count, "y" if count == 1 else "ies")
            return count

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
