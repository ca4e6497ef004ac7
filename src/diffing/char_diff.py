# src/diffing/char_diff.py — v1
"""Character-level diff built on a longest-common-subsequence alignment.

The shared prefix and suffix are trimmed first so the quadratic alignment
only runs over the divergent interior.
"""

from __future__ import annotations

from charfidelity.core.models import CharDiff, DiffSegment, SegmentTag
from charfidelity.core.text import ensure_text


def diff(expected: str | bytes, actual: str | bytes) -> CharDiff:
    """Align ``expected`` with ``actual`` and return the segment sequence.

    Within a divergent run, removals are emitted before additions so that
    ``CharDiff.format()`` reads ``{-old-}{+new+}``.

    Raises:
        InvalidTextError: If either input is malformed.
    """
    expected = ensure_text(expected, "expected")
    actual = ensure_text(actual, "actual")

    prefix_len, suffix_len = common_boundaries(expected, actual)
    exp_mid = expected[prefix_len:len(expected) - suffix_len]
    act_mid = actual[prefix_len:len(actual) - suffix_len]

    ops: list[tuple[SegmentTag, str]] = []
    if prefix_len:
        ops.append((SegmentTag.EQUAL, expected[:prefix_len]))
    ops.extend(_align(exp_mid, act_mid))
    if suffix_len:
        ops.append((SegmentTag.EQUAL, expected[len(expected) - suffix_len:]))

    return CharDiff(segments=tuple(_merge(ops)))


def common_boundaries(a: str, b: str) -> tuple[int, int]:
    """Return (prefix, suffix) lengths shared by ``a`` and ``b``.

    The suffix never overlaps the prefix.
    """
    limit = min(len(a), len(b))
    prefix = 0
    while prefix < limit and a[prefix] == b[prefix]:
        prefix += 1

    suffix = 0
    max_suffix = limit - prefix
    while suffix < max_suffix and a[len(a) - 1 - suffix] == b[len(b) - 1 - suffix]:
        suffix += 1
    return prefix, suffix


def _align(a: str, b: str) -> list[tuple[SegmentTag, str]]:
    """LCS alignment emitting one op per code point."""
    if not a:
        return [(SegmentTag.ADDED, ch) for ch in b]
    if not b:
        return [(SegmentTag.REMOVED, ch) for ch in a]

    n, m = len(a), len(b)
    # lcs[i][j] = LCS length of a[i:] and b[j:]
    lcs = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = lcs[i], lcs[i + 1]
        ai = a[i]
        for j in range(m - 1, -1, -1):
            if ai == b[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = below[j] if below[j] >= row[j + 1] else row[j + 1]

    ops: list[tuple[SegmentTag, str]] = []
    i = j = 0
    while i < n and j < m:
        if a[i] == b[j]:
            ops.append((SegmentTag.EQUAL, a[i]))
            i += 1
            j += 1
        elif lcs[i + 1][j] >= lcs[i][j + 1]:
            ops.append((SegmentTag.REMOVED, a[i]))
            i += 1
        else:
            ops.append((SegmentTag.ADDED, b[j]))
            j += 1
    ops.extend((SegmentTag.REMOVED, ch) for ch in a[i:])
    ops.extend((SegmentTag.ADDED, ch) for ch in b[j:])
    return ops


def _merge(ops: list[tuple[SegmentTag, str]]) -> list[DiffSegment]:
    """Coalesce ops into segments, removals ahead of additions per run."""
    segments: list[DiffSegment] = []
    equal: list[str] = []
    removed: list[str] = []
    added: list[str] = []

    def flush_changes() -> None:
        if removed:
            segments.append(DiffSegment(tag=SegmentTag.REMOVED, text="".join(removed)))
            removed.clear()
        if added:
            segments.append(DiffSegment(tag=SegmentTag.ADDED, text="".join(added)))
            added.clear()

    for tag, text in ops:
        if tag is SegmentTag.EQUAL:
            flush_changes()
            equal.append(text)
            continue
        if equal:
            segments.append(DiffSegment(tag=SegmentTag.EQUAL, text="".join(equal)))
            equal.clear()
        (removed if tag is SegmentTag.REMOVED else added).append(text)

    flush_changes()
    if equal:
        segments.append(DiffSegment(tag=SegmentTag.EQUAL, text="".join(equal)))
    return segments
