# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides isolated settings, in-memory telemetry sinks and sample entries.
No external services; file sinks write under tmp_path.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from charfidelity.config.settings import Settings
from charfidelity.logging.context import clear_context
from charfidelity.tracking.base_sink import BaseTelemetrySink
from charfidelity.tracking.models import LogEntry, MatchOutcome


class RecordingSink(BaseTelemetrySink):
    """In-memory sink; optionally slow or failing."""

    def __init__(self, delay_s: float = 0.0, fail_times: int = 0) -> None:
        self.entries: list = []
        self.batches: list[int] = []
        self.closed = False
        self._delay_s = delay_s
        self._fail_times = fail_times
        self._lock = threading.Lock()

    @property
    def location(self) -> Path | None:
        return None

    def write_batch(self, entries: list) -> None:
        if self._delay_s:
            time.sleep(self._delay_s)
        with self._lock:
            if self._fail_times > 0:
                self._fail_times -= 1
                raise OSError("disk unavailable")
            self.entries.extend(entries)
            self.batches.append(len(entries))

    def close(self) -> None:
        self.closed = True


# === FIXTURES: Settings ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from .env, telemetry pointed at tmp_path."""
    return Settings(
        _env_file=None,
        telemetry_enabled=False,
        telemetry_log_dir=tmp_path / "logs",
    )


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


# === FIXTURES: Telemetry ===


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def sink_factory():
    """Build RecordingSink instances with custom delay / failure count."""
    return RecordingSink


@pytest.fixture
def make_entry():
    """Factory for minimal valid match LogEntry objects."""

    def _make(search_text: str = "needle", **overrides) -> LogEntry:
        data = {
            "search_text": search_text,
            "execution_time_ms": 1.5,
            "fuzzy_threshold": 0.7,
            "search_length": len(search_text),
            "result": MatchOutcome.NOT_FOUND,
        }
        data.update(overrides)
        return LogEntry(**data)

    return _make


# === FIXTURES: Sample text ===


@pytest.fixture
def pangram() -> str:
    return "The quick brown fox jumps over the lazy dog"


@pytest.fixture
def python_source() -> str:
    return (
        "def get_user_data(user_id):\n"
        "    user = db.fetch(user_id)\n"
        "    if user is None:\n"
        "        return {}\n"
        "    return user.to_dict()\n"
    )
