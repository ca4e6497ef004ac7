# src/tracking/jsonl_sink.py — v1
"""Append-only JSON Lines telemetry sink (default backend).

One entry per line, each line parseable on its own.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from charfidelity.tracking.base_sink import BaseTelemetrySink

if TYPE_CHECKING:
    from charfidelity.tracking.models import TelemetryEntry


class JsonlFileSink(BaseTelemetrySink):
    """Append telemetry entries to a local ``.jsonl`` file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def location(self) -> Path:
        return self._path

    def write_batch(self, entries: list[TelemetryEntry]) -> None:
        if not entries:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = "".join(entry.model_dump_json() + "\n" for entry in entries)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
