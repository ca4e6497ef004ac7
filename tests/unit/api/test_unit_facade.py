# tests/unit/api/test_unit_facade.py — v3
"""Tests for api/facade.py — FidelityEngine wiring."""

from __future__ import annotations

import pytest

from charfidelity.analysis.char_analysis import analyze
from charfidelity.api.facade import FidelityEngine
from charfidelity.cache.diagnostic_cache import DiagnosticCache
from charfidelity.config.settings import Settings
from charfidelity.core.models import WhitespaceIssue
from charfidelity.core.text import InvalidTextError
from charfidelity.matching.fuzzy_locator import FuzzyLocator
from charfidelity.tracking.models import DiagnosticLogEntry, LogEntry, MatchOutcome
from charfidelity.tracking.telemetry import TelemetryPipeline


@pytest.fixture
def engine(settings):
    with FidelityEngine(settings) as eng:
        yield eng


@pytest.fixture
def pipeline(recording_sink):
    p = TelemetryPipeline(recording_sink, flush_interval_s=60)
    yield p
    p.shutdown()


class TestPureOperations:
    def test_distance(self, engine):
        assert engine.distance("kitten", "sitting") == 3

    def test_similarity(self, engine):
        assert engine.similarity("hello", "hallo") == pytest.approx(0.8)

    def test_locate_uses_settings_threshold(self, engine):
        # "axc" scores 2/3, under the default 0.7 threshold.
        assert engine.locate("axcde", "abc") is None
        assert engine.locate("axcde", "abc", threshold=0.5) is not None

    def test_diff(self, engine):
        assert engine.diff("abc", "abd").format() == "ab{-c-}{+d+}"

    def test_analyze_is_cached(self, engine):
        first = engine.analyze("a\tb", "a  b")
        second = engine.analyze("a\tb", "a  b")
        assert first == second == analyze("a\tb", "a  b")
        assert engine.cache.stats().hits == 1


class TestMatch:
    def test_exact(self, engine, python_source):
        attempt = engine.match(python_source, "user = db.fetch(user_id)")
        assert attempt.outcome is MatchOutcome.EXACT_MATCH
        assert attempt.exact_match_count == 1
        assert attempt.accepted
        assert attempt.replacement_count_matches
        assert attempt.match.start == python_source.index("user = db")
        assert attempt.diff is None

    def test_exact_count_mismatch(self, engine):
        attempt = engine.match("ab ab", "ab")
        assert attempt.exact_match_count == 2
        assert not attempt.replacement_count_matches

    def test_fuzzy(self, engine, python_source):
        attempt = engine.match(python_source, "user = db.fetch(userid)")
        assert attempt.outcome is MatchOutcome.FUZZY_MATCH
        assert attempt.accepted
        assert attempt.match.value == "user = db.fetch(user_id)"
        assert attempt.diff.format() == "user = db.fetch(user{+_+}id)"
        assert attempt.diagnostics is not None

    def test_below_threshold(self, engine, python_source):
        attempt = engine.match(python_source, "user = db.fetch(userid)", threshold=0.99)
        assert attempt.outcome is MatchOutcome.BELOW_THRESHOLD
        assert not attempt.accepted
        assert attempt.match is not None

    def test_not_found(self, engine):
        attempt = engine.match("", "anything")
        assert attempt.outcome is MatchOutcome.NOT_FOUND
        assert attempt.match is None

    def test_whitespace_only_mismatch(self, engine):
        haystack = "\tif x:\n\t\treturn 1\n"
        needle = "    if x:\n        return 1\n"
        attempt = engine.match(haystack, needle, threshold=0.5)
        assert attempt.outcome is MatchOutcome.FUZZY_MATCH
        assert attempt.diff.is_whitespace_only()
        assert WhitespaceIssue.TABS_VS_SPACES in attempt.diagnostics.whitespace_issues

    def test_execution_time_recorded(self, engine):
        assert engine.match("abc", "b").execution_time_ms >= 0.0

    def test_empty_needle_rejected(self, engine):
        with pytest.raises(ValueError, match="needle"):
            engine.match("abc", "")

    def test_invalid_threshold(self, engine):
        with pytest.raises(ValueError, match="threshold"):
            engine.match("abc", "b", threshold=2.0)

    def test_invalid_text(self, engine):
        with pytest.raises(InvalidTextError):
            engine.match(b"\xfe", "b")


class TestTelemetry:
    def test_disabled_by_settings(self, engine):
        assert engine.telemetry is None

    def test_match_emits_log_entry(self, settings, pipeline, recording_sink, python_source):
        engine = FidelityEngine(settings, telemetry=pipeline)
        engine.match(python_source, "user = db.fetch(userid)", file_extension=".py")
        engine.close()
        assert pipeline.is_running
        pipeline.shutdown()

        [entry] = recording_sink.entries
        assert isinstance(entry, LogEntry)
        assert entry.result is MatchOutcome.FUZZY_MATCH
        assert entry.found_text == "user = db.fetch(user_id)"
        assert entry.file_extension == "py"
        assert entry.diff == "user = db.fetch(user{+_+}id)"
        assert entry.search_length == len("user = db.fetch(userid)")
        assert entry.character_codes == "95:1[_]"
        assert entry.fuzzy_threshold == settings.fuzzy_threshold

    def test_exact_entry(self, settings, pipeline, recording_sink):
        FidelityEngine(settings, telemetry=pipeline).match("abc", "b")
        pipeline.shutdown()
        [entry] = recording_sink.entries
        assert entry.result is MatchOutcome.EXACT_MATCH
        assert entry.exact_match_count == 1
        assert entry.diff is None

    def test_below_threshold_flag(self, settings, pipeline, recording_sink):
        FidelityEngine(settings, telemetry=pipeline).match("axcde", "abc")
        pipeline.shutdown()
        [entry] = recording_sink.entries
        assert entry.below_threshold
        assert entry.result is MatchOutcome.BELOW_THRESHOLD

    def test_analyze_emits_diagnostic_entry(self, settings, pipeline, recording_sink):
        FidelityEngine(settings, telemetry=pipeline).analyze("a\r\nb", "a\nb")
        pipeline.shutdown()
        [entry] = recording_sink.entries
        assert isinstance(entry, DiagnosticLogEntry)
        assert entry.whitespace_issues == ["MixedLineEndings"]

    def test_owned_pipeline_shut_down_on_close(self, tmp_path):
        settings = Settings(_env_file=None, telemetry_log_dir=tmp_path)
        engine = FidelityEngine(settings)
        assert engine.telemetry is not None
        engine.match("abc", "b")
        engine.close()
        assert not engine.telemetry.is_running
        assert settings.telemetry_log_path.exists()


class TestSharing:
    def test_shared_cache(self, settings):
        cache = DiagnosticCache(capacity=10)
        FidelityEngine(settings, cache=cache).analyze("x", "y")
        FidelityEngine(settings, cache=cache).analyze("x", "y")
        assert cache.stats().hits == 1

    def test_empty_shared_cache_kept(self, settings):
        cache = DiagnosticCache(capacity=10)
        assert len(cache) == 0
        engine = FidelityEngine(settings, cache=cache)
        assert engine.cache is cache
        engine.analyze("a\tb", "a b")
        assert len(cache) == 1

    def test_injected_locator_used(self, settings):
        shallow = FuzzyLocator(max_depth=2, leaf_size=4)
        engine = FidelityEngine(settings, locator=shallow)
        assert engine.locator is shallow
        assert engine.locate("xxabxcxx", "abc", threshold=0.0).value == "abxc"
