# tests/integration/tracking/test_int_telemetry_pipeline.py — v1
"""Integration test for the telemetry chain: producers → pipeline → JSONL file.

No external services required — uses filesystem only.
"""

from __future__ import annotations

import json
import threading

from charfidelity.tracking.jsonl_sink import JsonlFileSink
from charfidelity.tracking.models import DiagnosticLogEntry, LogEntry, MatchOutcome
from charfidelity.tracking.telemetry import TelemetryPipeline


def _match_entry(text: str) -> LogEntry:
    return LogEntry(
        search_text=text,
        execution_time_ms=0.4,
        fuzzy_threshold=0.7,
        search_length=len(text),
        result=MatchOutcome.NOT_FOUND,
    )


class TestJsonlPipeline:
    def test_many_producers_one_file(self, tmp_path):
        path = tmp_path / "telemetry" / "fuzzy-search.jsonl"
        pipeline = TelemetryPipeline(JsonlFileSink(path), flush_interval_s=0.02, batch_size=25)

        def produce(worker: int) -> None:
            for i in range(200):
                pipeline.log(_match_entry(f"w{worker}-{i}"))

        threads = [threading.Thread(target=produce, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert pipeline.shutdown() is True

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1000
        texts = [json.loads(line)["search_text"] for line in lines]
        assert len(set(texts)) == 1000
        stats = pipeline.stats()
        assert stats.written == 1000
        assert stats.dropped == 0

    def test_mixed_entry_types(self, tmp_path):
        path = tmp_path / "fuzzy-search.jsonl"
        with TelemetryPipeline(JsonlFileSink(path), flush_interval_s=60) as pipeline:
            pipeline.log(_match_entry("a"))
            pipeline.log(DiagnosticLogEntry(
                expected_length=1, actual_length=2, unique_count=2,
                has_zero_width=False, execution_time_ms=0.1,
            ))
        events = [json.loads(line)["event"] for line in path.read_text(encoding="utf-8").splitlines()]
        assert events == ["match", "diagnostic"]

    def test_unwritable_path_reports_errors(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        errors = []
        pipeline = TelemetryPipeline(
            JsonlFileSink(blocker / "fuzzy-search.jsonl"),
            flush_interval_s=60,
            on_sink_error=lambda exc, batch: errors.append(type(exc)),
        )
        pipeline.log(_match_entry("a"))
        pipeline.log(_match_entry("b"))
        assert pipeline.shutdown() is True
        assert len(errors) == 2
        assert all(issubclass(e, OSError) for e in errors)
        assert pipeline.stats().dropped == 2

    def test_reopen_appends(self, tmp_path):
        path = tmp_path / "fuzzy-search.jsonl"
        for text in ("first", "second"):
            with TelemetryPipeline(JsonlFileSink(path), flush_interval_s=60) as pipeline:
                pipeline.log(_match_entry(text))
        texts = [json.loads(line)["search_text"] for line in path.read_text(encoding="utf-8").splitlines()]
        assert texts == ["first", "second"]
