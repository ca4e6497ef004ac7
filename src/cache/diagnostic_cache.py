# src/cache/diagnostic_cache.py — v1
"""Bounded LRU cache of character diagnostics, shared across threads.

The lock guards only the recency structure (hit check, promotion, insert,
eviction). Diagnostics are computed outside it: two threads missing on the
same key may both compute, and the last insert wins. The computation is
deterministic, so either value is correct.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Callable

from charfidelity.analysis.char_analysis import analyze
from charfidelity.cache.models import CacheEntry, CacheStats
from charfidelity.core.models import CharCodeData

if TYPE_CHECKING:
    from charfidelity.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


def pair_key(expected: str | bytes, actual: str | bytes) -> str:
    """Stable SHA-256 key of an (expected, actual) pair.

    Each side is length-prefixed so that ("ab", "c") and ("a", "bc") differ.
    """
    digest = hashlib.sha256()
    for part in (expected, actual):
        raw = part if isinstance(part, (bytes, bytearray)) else part.encode("utf-8", "surrogatepass")
        digest.update(len(raw).to_bytes(8, "big"))
        digest.update(bytes(raw))
    return digest.hexdigest()


class DiagnosticCache:
    """LRU cache mapping (expected, actual) to its CharCodeData.

    Args:
        capacity: Maximum number of entries kept.
        compute: Pure diagnostic function, ``analyze`` by default.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        compute: Callable[[str | bytes, str | bytes], CharCodeData] = analyze,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._capacity = capacity
        self._compute = compute
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> DiagnosticCache:
        return cls(capacity=settings.cache_capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def get_or_compute(self, expected: str | bytes, actual: str | bytes) -> CharCodeData:
        """Return the cached diagnostic for the pair, computing it on a miss.

        Raises:
            InvalidTextError: Propagated from the diagnostic function.
        """
        key = pair_key(expected, actual)

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and not isinstance(entry.value, CharCodeData):
                logger.warning("Discarding corrupt cache entry %s", key[:12])
                del self._entries[key]
                entry = None
            if entry is not None:
                self._entries.move_to_end(key)
                entry.last_access = time.monotonic()
                entry.hits += 1
                self._hits += 1
                return entry.value
            self._misses += 1

        value = self._compute(expected, actual)

        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, last_access=time.monotonic())
            self._entries.move_to_end(key)
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("Evicted diagnostic %s", evicted[:12])
        return value

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                capacity=self._capacity,
                size=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        key = pair_key(*pair)
        with self._lock:
            return key in self._entries
