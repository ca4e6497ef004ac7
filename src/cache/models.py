# src/cache/models.py — v2
"""Diagnostic cache models: CacheEntry, CacheStats."""

from __future__ import annotations

from pydantic import BaseModel

from charfidelity.core.models import CharCodeData


class CacheEntry(BaseModel):
    """One cached diagnostic with its recency metadata."""

    key: str
    value: CharCodeData
    last_access: float
    hits: int = 0


class CacheStats(BaseModel):
    """Point-in-time counters of a DiagnosticCache."""

    capacity: int
    size: int
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0
