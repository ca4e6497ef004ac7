# src/logging/logger.py — v3
"""Handler setup for the ``charfidelity`` logger tree.

Modules log through ``logging.getLogger(__name__)``; nothing is emitted
until an application calls ``setup_logging``. Records carry the session,
operation and file type of the engine call that produced them.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from charfidelity.logging.context import get_context
from charfidelity.logging.handlers import create_rotating_handler

if TYPE_CHECKING:
    from charfidelity.config.settings import Settings

ROOT_LOGGER = "charfidelity"


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the engine context when set."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            payload["context"] = context
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """``time [LEVEL] logger [operation] (.ext) - message``"""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if ctx.operation:
            parts.append(f"[{ctx.operation}]")
        if ctx.file_extension:
            parts.append(f"(.{ctx.file_extension.lstrip('.')})")
        parts.append(f"- {record.getMessage()}")
        text = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            text += "\n" + self.formatException(record.exc_info)
        return text


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> None:
    """Attach stderr (and optionally rotating file) handlers.

    Calling it again replaces the handlers installed by the previous call.
    """
    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(create_rotating_handler(log_file, rotation=rotation, retention=retention))
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)


def setup_logging_from_settings(settings: Settings) -> None:
    """Apply the logging section of a Settings instance."""
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
