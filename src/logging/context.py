# src/logging/context.py — v2
"""Contextual logging support: attach session, operation and file type to records."""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

# Context variables for structured logging, set per caller session / operation.
_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_file_extension: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file_extension", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    session_id: str | None = None
    operation: str | None = None
    file_extension: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        session_id=_session_id.get(),
        operation=_operation.get(),
        file_extension=_file_extension.get(),
    )


def set_session_context(session_id: str) -> None:
    """Set session-level context (called once per engine)."""
    _session_id.set(session_id)


@contextmanager
def operation_context(operation: str, file_extension: str | None = None) -> Iterator[None]:
    """Scope ``operation`` (and optionally the file type) to a block."""
    op_token = _operation.set(operation)
    ext_token = _file_extension.set(file_extension or None)
    try:
        yield
    finally:
        _operation.reset(op_token)
        _file_extension.reset(ext_token)


def clear_context() -> None:
    """Reset all context variables."""
    _session_id.set(None)
    _operation.set(None)
    _file_extension.set(None)
