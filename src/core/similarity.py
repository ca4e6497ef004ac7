# src/core/similarity.py — v3
"""Edit distance and similarity ratio over code points.

Both functions accept ``str`` or UTF-8 ``bytes`` and validate them through
``ensure_text`` so multi-unit characters are never split.
"""

from __future__ import annotations

from charfidelity.core.text import ensure_text


def distance(a: str | bytes, b: str | bytes) -> int:
    """Levenshtein distance with unit insertion, deletion and substitution.

    Uses two rolling rows sized on the shorter input.

    Raises:
        InvalidTextError: If either input is malformed.
    """
    a = ensure_text(a, "a")
    b = ensure_text(b, "b")
    return _levenshtein(a, b)


def similarity(a: str | bytes, b: str | bytes) -> float:
    """Similarity ratio in [0, 1]: ``1 - distance / max(len(a), len(b))``.

    Two empty inputs are identical and score 1.0.
    """
    a = ensure_text(a, "a")
    b = ensure_text(b, "b")
    return ratio(_levenshtein(a, b), max(len(a), len(b)))


def ratio(edit_distance: int, longest: int) -> float:
    """Normalize an edit distance against the longer input length."""
    if longest == 0:
        return 1.0
    return 1.0 - (edit_distance / longest)


def _levenshtein(a: str, b: str) -> int:
    """Distance on already-validated text."""
    if a == b:
        return 0
    # Keep the rolling rows on the shorter sequence.
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]
