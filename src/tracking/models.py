# src/tracking/models.py — v2
"""Telemetry domain models: LogEntry, DiagnosticLogEntry, TelemetryStats.

Each entry serializes to one self-contained JSON line.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field


class MatchOutcome(str, Enum):
    """Classification of a match attempt."""

    EXACT_MATCH = "ExactMatch"
    FUZZY_MATCH = "FuzzyMatch"
    BELOW_THRESHOLD = "BelowThreshold"
    NOT_FOUND = "NotFound"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LogEntry(BaseModel):
    """One match attempt (exact or fuzzy) against a file's content."""

    event: Literal["match"] = "match"
    timestamp: datetime = Field(default_factory=_utcnow)
    search_text: str
    found_text: str | None = None
    similarity: float | None = None
    execution_time_ms: float
    exact_match_count: int = 0
    expected_replacements: int = 1
    fuzzy_threshold: float
    below_threshold: bool = False
    diff: str | None = None
    search_length: int
    found_length: int | None = None
    file_extension: str = ""
    character_codes: str | None = None
    unique_character_count: int | None = None
    diff_length: int | None = None
    result: MatchOutcome


class DiagnosticLogEntry(BaseModel):
    """One character diagnostic computation."""

    event: Literal["diagnostic"] = "diagnostic"
    timestamp: datetime = Field(default_factory=_utcnow)
    expected_length: int
    actual_length: int
    unique_count: int
    has_zero_width: bool
    whitespace_issues: list[str] = []
    encoding_issues: list[str] = []
    execution_time_ms: float


TelemetryEntry = Union[LogEntry, DiagnosticLogEntry]


class TelemetryStats(BaseModel):
    """Counters of a TelemetryPipeline."""

    submitted: int = 0
    written: int = 0
    dropped: int = 0
    failed_writes: int = 0
    batches_flushed: int = 0
