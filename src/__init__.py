"""charfidelity: diagnose invisible-character mismatches between text fragments.

Fuzzy substring location, character-level diffs, cached invisible-character
diagnostics and a non-blocking telemetry log.
"""

from charfidelity.analysis.char_analysis import analyze
from charfidelity.api.facade import FidelityEngine
from charfidelity.api.models import MatchAttempt
from charfidelity.cache.diagnostic_cache import DiagnosticCache
from charfidelity.core.models import (
    CharCodeData,
    CharDiff,
    DiffSegment,
    EncodingIssue,
    MatchResult,
    SegmentTag,
    WhitespaceIssue,
)
from charfidelity.core.similarity import distance, similarity
from charfidelity.core.text import InvalidTextError
from charfidelity.diffing.char_diff import diff
from charfidelity.matching.fuzzy_locator import FuzzyLocator, locate
from charfidelity.tracking.models import DiagnosticLogEntry, LogEntry, MatchOutcome
from charfidelity.tracking.telemetry import TelemetryPipeline
from charfidelity.version import __version__

__all__ = [
    "CharCodeData",
    "CharDiff",
    "DiagnosticCache",
    "DiagnosticLogEntry",
    "DiffSegment",
    "EncodingIssue",
    "FidelityEngine",
    "FuzzyLocator",
    "InvalidTextError",
    "LogEntry",
    "MatchAttempt",
    "MatchOutcome",
    "MatchResult",
    "SegmentTag",
    "TelemetryPipeline",
    "WhitespaceIssue",
    "__version__",
    "analyze",
    "diff",
    "distance",
    "locate",
    "similarity",
]
