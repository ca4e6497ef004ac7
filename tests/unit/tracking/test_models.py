# tests/unit/tracking/test_models.py — v2
"""Tests for tracking/models.py — telemetry entry models."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from charfidelity.tracking.models import DiagnosticLogEntry, LogEntry, MatchOutcome, TelemetryStats


class TestLogEntry:
    def test_defaults(self, make_entry):
        entry = make_entry()
        assert entry.event == "match"
        assert entry.timestamp.tzinfo is not None
        assert entry.found_text is None
        assert entry.expected_replacements == 1

    def test_json_line(self, make_entry):
        entry = make_entry(
            "needle",
            found_text="nedle",
            similarity=0.83,
            result=MatchOutcome.FUZZY_MATCH,
            diff="n{+e+}edle",
            file_extension="py",
        )
        line = entry.model_dump_json()
        assert "\n" not in line
        parsed = json.loads(line)
        assert parsed["result"] == "FuzzyMatch"
        assert parsed["similarity"] == 0.83
        assert parsed["file_extension"] == "py"

    def test_required_fields(self):
        with pytest.raises(ValidationError):
            LogEntry(search_text="x")  # type: ignore[call-arg]

    def test_outcome_values(self):
        assert [o.value for o in MatchOutcome] == [
            "ExactMatch", "FuzzyMatch", "BelowThreshold", "NotFound",
        ]


class TestDiagnosticLogEntry:
    def test_create(self):
        entry = DiagnosticLogEntry(
            expected_length=3, actual_length=4, unique_count=5,
            has_zero_width=True, whitespace_issues=["ExtraSpaces"],
            execution_time_ms=0.2,
        )
        parsed = json.loads(entry.model_dump_json())
        assert parsed["event"] == "diagnostic"
        assert parsed["whitespace_issues"] == ["ExtraSpaces"]
        assert parsed["encoding_issues"] == []


class TestTelemetryStats:
    def test_defaults(self):
        stats = TelemetryStats()
        assert stats.submitted == stats.written == stats.dropped == 0
