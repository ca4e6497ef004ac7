# src/tracking/telemetry.py — v2
"""Fire-and-forget telemetry pipeline with one background flushing worker.

``log()`` only appends to an unbounded queue, so it returns in constant time
whatever the sink does. The worker batches entries and writes them when the
flush interval elapses or the batch size is reached. Sink failures stay
inside the pipeline: they are logged, passed to an optional callback, and
the batch is retried once or dropped.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from charfidelity.tracking.jsonl_sink import JsonlFileSink
from charfidelity.tracking.models import TelemetryEntry, TelemetryStats

if TYPE_CHECKING:
    from charfidelity.config.settings import Settings
    from charfidelity.tracking.base_sink import BaseTelemetrySink

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_INTERVAL_S = 5.0
DEFAULT_BATCH_SIZE = 100

SinkErrorCallback = Callable[[Exception, list[TelemetryEntry]], None]

_STOP = object()


class TelemetryPipeline:
    """Asynchronous, non-blocking event logger.

    The worker thread starts on construction; ``shutdown()`` is the only way
    to stop it and guarantees every entry logged before the call reaches the
    sink (unless the sink keeps failing).

    Args:
        sink: Durable destination of the entries.
        flush_interval_s: Maximum time an entry waits before a flush.
        batch_size: Pending entries that trigger an early flush.
        retry_failed_batch: Retry a failed write once before dropping it.
        on_sink_error: Called with (exception, batch) on every failed write.
    """

    def __init__(
        self,
        sink: BaseTelemetrySink,
        flush_interval_s: float = DEFAULT_FLUSH_INTERVAL_S,
        batch_size: int = DEFAULT_BATCH_SIZE,
        retry_failed_batch: bool = True,
        on_sink_error: SinkErrorCallback | None = None,
    ) -> None:
        if flush_interval_s <= 0:
            raise ValueError("flush_interval_s must be > 0")
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._sink = sink
        self._flush_interval_s = flush_interval_s
        self._batch_size = batch_size
        self._retry_failed_batch = retry_failed_batch
        self._on_sink_error = on_sink_error

        self._queue: queue.SimpleQueue[object] = queue.SimpleQueue()
        self._closed = threading.Event()
        self._intake_lock = threading.Lock()
        self._shutdown_lock = threading.Lock()
        self._sink_closed = False
        self._stats = TelemetryStats()
        self._stats_lock = threading.Lock()

        self._worker = threading.Thread(
            target=self._run, name="charfidelity-telemetry", daemon=True,
        )
        self._worker.start()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        sink: BaseTelemetrySink | None = None,
    ) -> TelemetryPipeline:
        """Build a pipeline writing to the configured JSONL log file."""
        if sink is None:
            sink = JsonlFileSink(settings.telemetry_log_path)
        return cls(
            sink,
            flush_interval_s=settings.telemetry_flush_interval_s,
            batch_size=settings.telemetry_batch_size,
            retry_failed_batch=settings.telemetry_retry_failed_batch,
        )

    # --- Producer side ---

    def log(self, entry: TelemetryEntry) -> None:
        """Enqueue ``entry`` and return immediately. Never raises."""
        try:
            # No entry may land behind the stop marker.
            with self._intake_lock:
                if not self._closed.is_set():
                    self._queue.put(entry)
                    self._bump(submitted=1)
                    return
            self._bump(dropped=1)
            logger.debug("Telemetry pipeline closed, dropping %s entry", entry.event)
        except Exception:
            logger.exception("Failed to enqueue telemetry entry")

    def log_path(self) -> Path | None:
        """Location of the sink, for operator inspection."""
        return self._sink.location

    def stats(self) -> TelemetryStats:
        with self._stats_lock:
            return self._stats.model_copy()

    @property
    def is_running(self) -> bool:
        return self._worker.is_alive()

    def shutdown(self, timeout: float | None = None) -> bool:
        """Stop intake, drain the queue, flush, and wait for the worker.

        Idempotent. Returns True once the worker has exited.
        """
        with self._intake_lock:
            if not self._closed.is_set():
                self._closed.set()
                self._queue.put(_STOP)

        self._worker.join(timeout)
        if self._worker.is_alive():
            logger.warning("Telemetry worker still flushing after %.1fs", timeout or 0.0)
            return False

        with self._shutdown_lock:
            if not self._sink_closed:
                self._sink_closed = True
                try:
                    self._sink.close()
                except Exception:
                    logger.exception("Failed to close telemetry sink %s", self._sink.location)
        return True

    def __enter__(self) -> TelemetryPipeline:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # --- Worker side ---

    def _run(self) -> None:
        pending: list[TelemetryEntry] = []
        deadline = time.monotonic() + self._flush_interval_s

        while True:
            item = None
            timeout = deadline - time.monotonic()
            if timeout > 0:
                try:
                    item = self._queue.get(timeout=timeout)
                except queue.Empty:
                    pass

            if item is _STOP:
                pending.extend(self._drain())
                self._flush(pending)
                logger.debug("Telemetry worker stopped")
                return

            if item is not None:
                pending.append(item)  # type: ignore[arg-type]

            if len(pending) >= self._batch_size or time.monotonic() >= deadline:
                if pending:
                    self._flush(pending)
                    pending = []
                deadline = time.monotonic() + self._flush_interval_s

    def _drain(self) -> list[TelemetryEntry]:
        drained: list[TelemetryEntry] = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return drained
            if item is not _STOP:
                drained.append(item)  # type: ignore[arg-type]

    def _flush(self, entries: list[TelemetryEntry]) -> None:
        for start in range(0, len(entries), self._batch_size):
            self._write(entries[start:start + self._batch_size])

    def _write(self, batch: list[TelemetryEntry]) -> None:
        attempts = 2 if self._retry_failed_batch else 1
        for attempt in range(1, attempts + 1):
            try:
                self._sink.write_batch(batch)
            except Exception as exc:
                self._bump(failed_writes=1)
                self._report_failure(exc, batch, attempt, attempts)
                continue
            self._bump(written=len(batch), batches_flushed=1)
            return

        self._bump(dropped=len(batch))
        logger.error(
            "Dropped %d telemetry entries after %d failed write(s) to %s",
            len(batch), attempts, self._sink.location,
        )

    def _report_failure(
        self,
        exc: Exception,
        batch: list[TelemetryEntry],
        attempt: int,
        attempts: int,
    ) -> None:
        logger.warning(
            "Telemetry sink write failed (attempt %d/%d, %d entries): %s",
            attempt, attempts, len(batch), exc,
        )
        if self._on_sink_error is None:
            return
        try:
            self._on_sink_error(exc, batch)
        except Exception:
            logger.exception("Telemetry sink error callback raised")

    def _bump(self, **deltas: int) -> None:
        with self._stats_lock:
            for name, delta in deltas.items():
                setattr(self._stats, name, getattr(self._stats, name) + delta)
