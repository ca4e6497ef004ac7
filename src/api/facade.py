# src/api/facade.py — v2
"""Public API facade: one engine object wiring the components together.

Usage:
    from charfidelity.api.facade import FidelityEngine
    with FidelityEngine() as engine:
        attempt = engine.match(file_content, search_text, file_extension="py")

The engine owns nothing global: its cache and telemetry pipeline are
explicit objects that can be shared by passing them to several engines.
"""

from __future__ import annotations

import logging
import time
import uuid

from charfidelity.api.models import MatchAttempt
from charfidelity.cache.diagnostic_cache import DiagnosticCache
from charfidelity.config.settings import Settings
from charfidelity.core import similarity as distance_engine
from charfidelity.core.models import CharCodeData, CharDiff, MatchResult
from charfidelity.core.text import ensure_text
from charfidelity.diffing.char_diff import diff as build_diff
from charfidelity.logging.context import operation_context, set_session_context
from charfidelity.matching.fuzzy_locator import FuzzyLocator
from charfidelity.tracking.models import DiagnosticLogEntry, LogEntry, MatchOutcome
from charfidelity.tracking.telemetry import TelemetryPipeline

logger = logging.getLogger(__name__)


class FidelityEngine:
    """Character fidelity engine: fuzzy location, diff, cached diagnostics.

    Args:
        settings: Global settings. Loaded from .env if None.
        cache: Shared diagnostic cache. Built from settings if None.
        telemetry: Shared telemetry pipeline. When None and telemetry is
            enabled, the engine starts its own and shuts it down on close().
        locator: Fuzzy locator. Built from settings if None.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: DiagnosticCache | None = None,
        telemetry: TelemetryPipeline | None = None,
        locator: FuzzyLocator | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._cache = cache if cache is not None else DiagnosticCache.from_settings(self._settings)
        self._locator = locator if locator is not None else FuzzyLocator.from_settings(self._settings)

        self._owns_telemetry = False
        if telemetry is None and self._settings.telemetry_enabled:
            telemetry = TelemetryPipeline.from_settings(self._settings)
            self._owns_telemetry = True
        self._telemetry = telemetry

        self.session_id = uuid.uuid4().hex[:12]
        set_session_context(self.session_id)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def cache(self) -> DiagnosticCache:
        return self._cache

    @property
    def locator(self) -> FuzzyLocator:
        return self._locator

    @property
    def telemetry(self) -> TelemetryPipeline | None:
        return self._telemetry

    # --- Pure operations ---

    def distance(self, a: str | bytes, b: str | bytes) -> int:
        return distance_engine.distance(a, b)

    def similarity(self, a: str | bytes, b: str | bytes) -> float:
        return distance_engine.similarity(a, b)

    def locate(
        self,
        haystack: str | bytes,
        needle: str | bytes,
        threshold: float | None = None,
    ) -> MatchResult | None:
        """Best fuzzy window, None below ``threshold`` (settings default)."""
        if threshold is None:
            threshold = self._settings.fuzzy_threshold
        return self._locator.locate(haystack, needle, threshold)

    def diff(self, expected: str | bytes, actual: str | bytes) -> CharDiff:
        return build_diff(expected, actual)

    # --- Telemetry-emitting operations ---

    def analyze(self, expected: str | bytes, actual: str | bytes) -> CharCodeData:
        """Cached character diagnostic for the pair."""
        expected = ensure_text(expected, "expected")
        actual = ensure_text(actual, "actual")
        with operation_context("analyze"):
            started = time.perf_counter()
            data = self._cache.get_or_compute(expected, actual)
            elapsed_ms = (time.perf_counter() - started) * 1000

            if self._telemetry is not None:
                self._telemetry.log(DiagnosticLogEntry(
                    expected_length=len(expected),
                    actual_length=len(actual),
                    unique_count=data.unique_count,
                    has_zero_width=data.has_zero_width,
                    whitespace_issues=sorted(i.value for i in data.whitespace_issues),
                    encoding_issues=sorted(i.value for i in data.encoding_issues),
                    execution_time_ms=elapsed_ms,
                ))
        return data

    def match(
        self,
        haystack: str | bytes,
        needle: str | bytes,
        threshold: float | None = None,
        expected_replacements: int = 1,
        file_extension: str = "",
    ) -> MatchAttempt:
        """Look for ``needle`` exactly, then fuzzily, and classify the outcome.

        Args:
            haystack: Content the edit would apply to.
            needle: Text the caller expects to find.
            threshold: Minimum similarity accepted as a fuzzy match.
            expected_replacements: Occurrences the caller expects.
            file_extension: Extension of the edited file, for telemetry.

        Raises:
            InvalidTextError: If either input is malformed.
            ValueError: If ``needle`` is empty or ``threshold`` out of range.
        """
        if threshold is None:
            threshold = self._settings.fuzzy_threshold
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        haystack = ensure_text(haystack, "haystack")
        needle = ensure_text(needle, "needle")
        if not needle:
            raise ValueError("needle must not be empty")

        with operation_context("match", file_extension):
            started = time.perf_counter()
            attempt = self._match(haystack, needle, threshold, expected_replacements)
            elapsed_ms = (time.perf_counter() - started) * 1000
            attempt = attempt.model_copy(update={"execution_time_ms": elapsed_ms})

            logger.debug(
                "Match attempt: outcome=%s exact=%d similarity=%s",
                attempt.outcome.value,
                attempt.exact_match_count,
                None if attempt.match is None else round(attempt.match.similarity, 4),
            )
            self._emit_match(attempt, needle, file_extension)
        return attempt

    def close(self) -> None:
        """Shut down the telemetry pipeline if this engine started it."""
        if self._owns_telemetry and self._telemetry is not None:
            self._telemetry.shutdown()

    def __enter__(self) -> FidelityEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- Internals ---

    def _match(
        self,
        haystack: str,
        needle: str,
        threshold: float,
        expected_replacements: int,
    ) -> MatchAttempt:
        exact_count = haystack.count(needle)
        if exact_count:
            start = haystack.find(needle)
            return MatchAttempt(
                outcome=MatchOutcome.EXACT_MATCH,
                threshold=threshold,
                exact_match_count=exact_count,
                expected_replacements=expected_replacements,
                match=MatchResult(
                    value=needle, start=start, end=start + len(needle),
                    distance=0, similarity=1.0,
                ),
            )

        found = self._locator.locate(haystack, needle, 0.0)
        if found is None:
            return MatchAttempt(
                outcome=MatchOutcome.NOT_FOUND,
                threshold=threshold,
                expected_replacements=expected_replacements,
            )

        outcome = (
            MatchOutcome.FUZZY_MATCH if found.similarity >= threshold
            else MatchOutcome.BELOW_THRESHOLD
        )
        return MatchAttempt(
            outcome=outcome,
            threshold=threshold,
            expected_replacements=expected_replacements,
            match=found,
            diff=build_diff(needle, found.value),
            diagnostics=self._cache.get_or_compute(needle, found.value),
        )

    def _emit_match(self, attempt: MatchAttempt, needle: str, file_extension: str) -> None:
        if self._telemetry is None:
            return
        found = attempt.match
        diagnostics = attempt.diagnostics
        self._telemetry.log(LogEntry(
            search_text=needle,
            found_text=None if found is None else found.value,
            similarity=None if found is None else found.similarity,
            execution_time_ms=attempt.execution_time_ms,
            exact_match_count=attempt.exact_match_count,
            expected_replacements=attempt.expected_replacements,
            fuzzy_threshold=attempt.threshold,
            below_threshold=attempt.outcome is MatchOutcome.BELOW_THRESHOLD,
            diff=None if attempt.diff is None else attempt.diff.format(),
            search_length=len(needle),
            found_length=None if found is None else len(found.value),
            file_extension=file_extension.lstrip("."),
            character_codes=None if diagnostics is None else diagnostics.code_report,
            unique_character_count=None if diagnostics is None else diagnostics.unique_count,
            diff_length=None if diagnostics is None else diagnostics.diff_length,
            result=attempt.outcome,
        ))
