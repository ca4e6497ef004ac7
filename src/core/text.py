# src/core/text.py — v1
"""Input validation for every public text operation.

All algorithms work on Python ``str`` (one element per code point). Raw bytes
are accepted and decoded as strict UTF-8 so that a malformed sequence fails
fast instead of being silently replaced.
"""

from __future__ import annotations

import re

_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


class InvalidTextError(ValueError):
    """Raised when an input is not well-formed Unicode text."""

    def __init__(self, argument: str, offset: int, reason: str) -> None:
        self.argument = argument
        self.offset = offset
        self.reason = reason
        super().__init__(f"Invalid text in '{argument}' at offset {offset}: {reason}")


def ensure_text(value: str | bytes, name: str = "text") -> str:
    """Return ``value`` as a validated ``str``.

    Args:
        value: Text or UTF-8 encoded bytes. A leading byte-order mark is
            preserved as U+FEFF so that diagnostics can report it.
        name: Argument name used in error messages.

    Raises:
        InvalidTextError: On undecodable bytes or lone surrogate code points.
        TypeError: If ``value`` is neither ``str`` nor ``bytes``.
    """
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidTextError(name, exc.start, exc.reason) from exc

    if not isinstance(value, str):
        raise TypeError(f"'{name}' must be str or bytes, got {type(value).__name__}")

    match = _LONE_SURROGATE.search(value)
    if match is not None:
        raise InvalidTextError(
            name,
            match.start(),
            f"lone surrogate U+{ord(match.group()):04X}",
        )
    return value
