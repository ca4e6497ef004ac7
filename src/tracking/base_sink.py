# src/tracking/base_sink.py — v1
"""Abstract durable sink for telemetry batches."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from charfidelity.tracking.models import TelemetryEntry


class BaseTelemetrySink(ABC):
    """Unified interface for telemetry storage backends."""

    @abstractmethod
    def write_batch(self, entries: list[TelemetryEntry]) -> None:
        """Durably append a batch. Raises on I/O failure."""

    @property
    @abstractmethod
    def location(self) -> Path | None:
        """Where the records end up, for operator inspection."""

    def close(self) -> None:
        """Release resources. Called once by the pipeline on shutdown."""
