# src/matching/fuzzy_locator.py — v3
"""Fuzzy substring location bounded by a similarity threshold.

Candidate windows start at every offset of the haystack and have a length
within a tolerance band around the needle length. The search splits the
start-offset range recursively. One pass over the haystack records, for
every end offset, the smallest distance from the needle to a substring
ending there; a segment is pruned when the lowest of those values over its
window end offsets bounds its similarity below the best candidate so far.
The more promising half of a segment is searched first. Segments at the
maximum depth or below the leaf size are scanned exhaustively, so the result
is the true best window (highest similarity, then leftmost start, then
shortest).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from charfidelity.core.models import MatchResult
from charfidelity.core.similarity import ratio
from charfidelity.core.text import ensure_text

if TYPE_CHECKING:
    from charfidelity.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_LENGTH_TOLERANCE = 0.25
DEFAULT_MAX_DEPTH = 16
DEFAULT_LEAF_SIZE = 64


@dataclass
class _Candidate:
    start: int
    end: int
    distance: int
    similarity: float

    def beats(self, other: _Candidate | None) -> bool:
        if other is None:
            return True
        if self.similarity != other.similarity:
            return self.similarity > other.similarity
        if self.start != other.start:
            return self.start < other.start
        return self.end < other.end


class FuzzyLocator:
    """Find the best approximate occurrence of a needle in a haystack.

    Args:
        length_tolerance: Fraction of the needle length by which window
            lengths may differ from it (at least one code point).
        max_depth: Maximum recursion depth of the segment search.
        leaf_size: Start-offset span below which a segment is scanned
            exhaustively instead of being split further.
    """

    def __init__(
        self,
        length_tolerance: float = DEFAULT_LENGTH_TOLERANCE,
        max_depth: int = DEFAULT_MAX_DEPTH,
        leaf_size: int = DEFAULT_LEAF_SIZE,
    ) -> None:
        if length_tolerance < 0:
            raise ValueError("length_tolerance must be >= 0")
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if leaf_size < 1:
            raise ValueError("leaf_size must be >= 1")
        self._length_tolerance = length_tolerance
        self._max_depth = max_depth
        self._leaf_size = leaf_size

    @classmethod
    def from_settings(cls, settings: Settings) -> FuzzyLocator:
        return cls(
            length_tolerance=settings.fuzzy_length_tolerance,
            max_depth=settings.fuzzy_max_recursion_depth,
            leaf_size=settings.fuzzy_leaf_size,
        )

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def locate(
        self,
        haystack: str | bytes,
        needle: str | bytes,
        threshold: float = 0.0,
    ) -> MatchResult | None:
        """Return the best window of ``haystack`` for ``needle``.

        Args:
            haystack: Text to search.
            needle: Text to look for.
            threshold: Minimum similarity in [0, 1]; 0 returns the best
                window unconditionally (for a non-empty haystack).

        Returns:
            MatchResult, or None when no window reaches ``threshold``.

        Raises:
            InvalidTextError: If either input is malformed.
            ValueError: If ``threshold`` is outside [0, 1].
        """
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        haystack = ensure_text(haystack, "haystack")
        needle = ensure_text(needle, "needle")

        if not needle:
            return MatchResult(value="", start=0, end=0, distance=0, similarity=1.0)
        if not haystack:
            return None

        exact = haystack.find(needle)
        if exact >= 0:
            return MatchResult(
                value=needle,
                start=exact,
                end=exact + len(needle),
                distance=0,
                similarity=1.0,
            )

        search = _Search(haystack, needle, self._window_band(len(needle), len(haystack)),
                         threshold, self._max_depth, self._leaf_size)
        best = search.run()
        logger.debug(
            "Fuzzy search: haystack=%d needle=%d segments=%d pruned=%d best=%s",
            len(haystack), len(needle), search.segments_visited,
            search.segments_pruned, None if best is None else round(best.similarity, 4),
        )
        if best is None or best.similarity < threshold:
            return None
        return MatchResult(
            value=haystack[best.start:best.end],
            start=best.start,
            end=best.end,
            distance=best.distance,
            similarity=best.similarity,
        )

    def _window_band(self, needle_len: int, haystack_len: int) -> tuple[int, int]:
        tolerance = max(1, math.ceil(needle_len * self._length_tolerance))
        min_len = min(max(1, needle_len - tolerance), haystack_len)
        max_len = min(needle_len + tolerance, haystack_len)
        return min_len, max_len


class _Search:
    """State of one recursive search; not shared between calls."""

    def __init__(
        self,
        haystack: str,
        needle: str,
        band: tuple[int, int],
        threshold: float,
        max_depth: int,
        leaf_size: int,
    ) -> None:
        self.haystack = haystack
        self.needle = needle
        self.min_len, self.max_len = band
        self.threshold = threshold
        self.max_depth = max_depth
        self.leaf_size = leaf_size
        self.masks = _match_masks(needle)
        # end_distances[j]: smallest distance from the needle to a substring ending at j
        self.end_distances: list[int] = []
        self.best: _Candidate | None = None
        self.segments_visited = 0
        self.segments_pruned = 0

    def run(self) -> _Candidate | None:
        n = len(self.needle)
        self.end_distances = [n]
        self.end_distances.extend(_edit_distances(self.masks, n, self.haystack, anchored=False))
        last_start = len(self.haystack) - self.min_len
        self._search(0, last_start + 1, 0, self._bound(0, last_start + 1))
        return self.best

    def _search(self, lo: int, hi: int, depth: int, bound: float) -> None:
        """Search windows whose start offset lies in [lo, hi)."""
        if lo >= hi:
            return
        self.segments_visited += 1

        if self._cannot_improve(lo, bound):
            self.segments_pruned += 1
            return

        if depth >= self.max_depth or hi - lo <= self.leaf_size:
            for start in range(lo, hi):
                self._scan_start(start)
            return

        mid = lo + (hi - lo) // 2
        halves = [(lo, mid, self._bound(lo, mid)), (mid, hi, self._bound(mid, hi))]
        # Most promising half first; stable sort keeps the left half on a tie.
        halves.sort(key=lambda half: -half[2])
        for half_lo, half_hi, half_bound in halves:
            self._search(half_lo, half_hi, depth + 1, half_bound)

    def _bound(self, lo: int, hi: int) -> float:
        """Upper bound on the similarity of any window starting in [lo, hi)."""
        if lo >= hi:
            return 0.0
        first_end = lo + self.min_len
        last_end = min(len(self.haystack), hi - 1 + self.max_len)
        lowest = min(self.end_distances[first_end:last_end + 1])
        return ratio(lowest, max(len(self.needle), self.max_len))

    def _cannot_improve(self, lo: int, bound: float) -> bool:
        if bound < self.threshold:
            return True
        if self.best is None or bound > self.best.similarity:
            return False
        # A tie only wins with an earlier start.
        return bound < self.best.similarity or lo > self.best.start

    def _scan_start(self, start: int) -> None:
        """Score every band length for windows beginning at ``start``."""
        n = len(self.needle)
        window = self.haystack[start:start + self.max_len]
        distances = _edit_distances(self.masks, n, window, anchored=True)
        for length, edit_distance in enumerate(distances, start=1):
            if length < self.min_len:
                continue
            candidate = _Candidate(
                start=start,
                end=start + length,
                distance=edit_distance,
                similarity=ratio(edit_distance, max(n, length)),
            )
            if candidate.beats(self.best):
                self.best = candidate


def _match_masks(needle: str) -> dict[str, int]:
    """Bit i of masks[ch] is set when needle[i] == ch."""
    masks: dict[str, int] = {}
    for i, ch in enumerate(needle):
        masks[ch] = masks.get(ch, 0) | (1 << i)
    return masks


def _edit_distances(
    masks: dict[str, int],
    needle_len: int,
    text: str,
    anchored: bool,
) -> Iterator[int]:
    """Yield one edit distance per code point of ``text`` (bit-parallel DP).

    The DP column is held as vertical +1/-1 delta bit vectors, so each text
    code point costs a fixed number of integer operations. With ``anchored``
    the j-th value is the distance between the needle and ``text[:j]``;
    otherwise it is the smallest distance between the needle and any
    substring of ``text`` ending at j.
    """
    full = (1 << needle_len) - 1
    top = 1 << (needle_len - 1)
    plus, minus = full, 0
    score = needle_len
    for ch in text:
        eq = masks.get(ch, 0)
        xv = eq | minus
        xh = ((((eq & plus) + plus) & full) ^ plus) | eq
        h_plus = minus | (~(xh | plus) & full)
        h_minus = plus & xh
        if h_plus & top:
            score += 1
        elif h_minus & top:
            score -= 1
        h_plus = (h_plus << 1) & full
        if anchored:
            h_plus |= 1
        h_minus = (h_minus << 1) & full
        plus = h_minus | (~(xv | h_plus) & full)
        minus = h_plus & xv
        yield score



def locate(
    haystack: str | bytes,
    needle: str | bytes,
    threshold: float = 0.0,
) -> MatchResult | None:
    """Module-level shortcut using the default locator configuration."""
    return _DEFAULT_LOCATOR.locate(haystack, needle, threshold)


_DEFAULT_LOCATOR = FuzzyLocator()
