# src/core/models.py — v2
"""Shared Pydantic value objects used across modules.

No module redefines these types; all imports come from core.models.
Every model is frozen: results are created per call and never mutated.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class _ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True)


# === FUZZY MATCHING ===


class MatchResult(_ValueObject):
    """Best-matching window of a haystack for a needle.

    ``start``/``end`` are code-point offsets, ``end`` exclusive.
    """

    value: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    distance: int = Field(ge=0)
    similarity: float = Field(ge=0.0, le=1.0)

    @property
    def is_exact(self) -> bool:
        return self.distance == 0


# === CHARACTER DIFF ===


class SegmentTag(str, Enum):
    """Alignment tag of a diff segment."""

    EQUAL = "Equal"
    REMOVED = "Removed"
    ADDED = "Added"


class DiffSegment(_ValueObject):
    """A run of code points sharing one alignment tag."""

    tag: SegmentTag
    text: str = Field(min_length=1)


class CharDiff(_ValueObject):
    """Ordered segment sequence aligning ``expected`` with ``actual``.

    Equal+Removed segments rebuild ``expected``; Equal+Added segments
    rebuild ``actual``.
    """

    segments: tuple[DiffSegment, ...] = ()

    def expected_text(self) -> str:
        return "".join(s.text for s in self.segments if s.tag is not SegmentTag.ADDED)

    def actual_text(self) -> str:
        return "".join(s.text for s in self.segments if s.tag is not SegmentTag.REMOVED)

    def has_changes(self) -> bool:
        return any(s.tag is not SegmentTag.EQUAL for s in self.segments)

    def removed_text(self) -> str:
        """All removed code points, in order."""
        return "".join(s.text for s in self.segments if s.tag is SegmentTag.REMOVED)

    def added_text(self) -> str:
        """All added code points, in order."""
        return "".join(s.text for s in self.segments if s.tag is SegmentTag.ADDED)

    def format(self) -> str:
        """Render as ``prefix{-removed-}{+added+}suffix``.

        Each divergent run is wrapped on its own; empty markers are omitted.
        """
        parts: list[str] = []
        for segment in self.segments:
            if segment.tag is SegmentTag.EQUAL:
                parts.append(segment.text)
            elif segment.tag is SegmentTag.REMOVED:
                parts.append(f"{{-{segment.text}-}}")
            else:
                parts.append(f"{{+{segment.text}+}}")
        return "".join(parts)

    def is_whitespace_only(self) -> bool:
        """True iff every differing code point is whitespace (``str.isspace``)."""
        return all(
            ch.isspace()
            for segment in self.segments
            if segment.tag is not SegmentTag.EQUAL
            for ch in segment.text
        )


# === CHARACTER ANALYSIS ===


class CharCategory(str, Enum):
    """Classification of a single code point."""

    ZERO_WIDTH = "ZeroWidth"
    BOM = "BOM"
    CONTROL = "Control"
    TAB = "Tab"
    SPACE = "Space"
    NON_BREAKING_SPACE = "NonBreakingSpace"
    LINE_FEED = "LineFeed"
    CARRIAGE_RETURN = "CarriageReturn"
    PRINTABLE = "Printable"
    UNICODE = "Unicode"


class LineEnding(str, Enum):
    LF = "LF"
    CRLF = "CRLF"
    CR = "CR"


class WhitespaceIssue(str, Enum):
    """Whitespace and formatting problems between two fragments."""

    TABS_VS_SPACES = "TabsVsSpaces"
    MIXED_LINE_ENDINGS = "MixedLineEndings"
    TRAILING_WHITESPACE = "TrailingWhitespace"
    EXTRA_SPACES = "ExtraSpaces"
    NON_BREAKING_SPACE = "NonBreakingSpace"


class EncodingIssue(str, Enum):
    """Encoding-related problems between two fragments."""

    INVALID_SEQUENCE = "InvalidSequence"
    UNEXPECTED_BOM = "UnexpectedBOM"
    NON_PRINTABLE = "NonPrintable"
    NORMALIZATION_MISMATCH = "NormalizationMismatch"


class CharDistribution(_ValueObject):
    """Code point counts of the differing regions, keyed by code point."""

    only_in_expected: dict[int, int] = {}
    only_in_actual: dict[int, int] = {}
    in_both: dict[int, tuple[int, int]] = {}


class UnicodeAnalysis(_ValueObject):
    """Unicode normalization status of the pair."""

    has_composed: bool = False
    has_decomposed: bool = False
    normalization_mismatch: bool = False


class LineEndingSummary(_ValueObject):
    expected: frozenset[LineEnding] = frozenset()
    actual: frozenset[LineEnding] = frozenset()

    @property
    def styles(self) -> frozenset[LineEnding]:
        return self.expected | self.actual


class CharCodeData(_ValueObject):
    """Character-level diagnostic for an (expected, actual) pair.

    A pure function of the two inputs: equal inputs give equal values.
    """

    report: str
    unique_count: int
    has_zero_width: bool
    whitespace_issues: frozenset[WhitespaceIssue] = frozenset()
    encoding_issues: frozenset[EncodingIssue] = frozenset()

    code_report: str = ""
    diff_length: int = 0
    classification: dict[CharCategory, int] = {}
    distribution: CharDistribution = CharDistribution()
    unicode_analysis: UnicodeAnalysis = UnicodeAnalysis()
    line_endings: LineEndingSummary = LineEndingSummary()
    zero_width_chars: tuple[int, ...] = ()

    @property
    def has_issues(self) -> bool:
        return bool(self.whitespace_issues or self.encoding_issues or self.has_zero_width)
