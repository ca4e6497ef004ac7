# src/analysis/char_analysis.py — v2
"""Character-level analysis of an (expected, actual) pair.

Detects the invisible differences that usually explain a failed match:
tabs vs. spaces, line-ending styles, trailing blanks, zero-width marks,
byte-order marks, replacement characters and non-printable controls.
``analyze`` is a pure function; DiagnosticCache relies on that.
"""

from __future__ import annotations

import re
import unicodedata
from collections import Counter

from charfidelity.analysis.report import format_code_report, render_report
from charfidelity.core.models import (
    CharCategory,
    CharCodeData,
    CharDistribution,
    EncodingIssue,
    LineEnding,
    LineEndingSummary,
    UnicodeAnalysis,
    WhitespaceIssue,
)
from charfidelity.core.text import ensure_text
from charfidelity.diffing.char_diff import common_boundaries, diff

BOM = 0xFEFF
REPLACEMENT_CHAR = 0xFFFD

ZERO_WIDTH_CHARS: frozenset[int] = frozenset({
    0x180E,  # Mongolian vowel separator
    0x200B,  # zero-width space
    0x200C,  # zero-width non-joiner
    0x200D,  # zero-width joiner
    0x200E,  # left-to-right mark
    0x200F,  # right-to-left mark
    0x2060,  # word joiner
    BOM,  # zero-width no-break space
})

EXTRA_SPACES_LIMIT = 3

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_INDENT = re.compile(r"^[ \t]+", re.MULTILINE)
_ALLOWED_CONTROLS = frozenset({0x09, 0x0A, 0x0D})


def classify_char(ch: str) -> CharCategory:
    """Classify one code point."""
    code = ord(ch)
    if code == BOM:
        return CharCategory.BOM
    if code in ZERO_WIDTH_CHARS:
        return CharCategory.ZERO_WIDTH
    if code == 0x09:
        return CharCategory.TAB
    if code == 0x0A:
        return CharCategory.LINE_FEED
    if code == 0x0D:
        return CharCategory.CARRIAGE_RETURN
    if code == 0x20:
        return CharCategory.SPACE
    if code < 0x20 or code == 0x7F or unicodedata.category(ch) == "Cc":
        return CharCategory.CONTROL
    if unicodedata.category(ch) == "Zs":
        return CharCategory.NON_BREAKING_SPACE
    if code < 0x7F:
        return CharCategory.PRINTABLE
    return CharCategory.UNICODE


def detect_line_endings(text: str) -> frozenset[LineEnding]:
    """Line-ending styles present in ``text``."""
    styles = set()
    for match in _LINE_BREAK.finditer(text):
        token = match.group()
        if token == "\r\n":
            styles.add(LineEnding.CRLF)
        elif token == "\r":
            styles.add(LineEnding.CR)
        else:
            styles.add(LineEnding.LF)
    return frozenset(styles)


def analyze(expected: str | bytes, actual: str | bytes) -> CharCodeData:
    """Compute the full character diagnostic for a pair.

    Raises:
        InvalidTextError: If either input is malformed.
    """
    expected = ensure_text(expected, "expected")
    actual = ensure_text(actual, "actual")

    prefix_len, suffix_len = common_boundaries(expected, actual)
    expected_diff = expected[prefix_len:len(expected) - suffix_len]
    actual_diff = actual[prefix_len:len(actual) - suffix_len]
    diff_codes = Counter(ord(ch) for ch in expected_diff + actual_diff)

    all_codes = set(map(ord, expected)) | set(map(ord, actual))
    zero_width = tuple(sorted(all_codes & ZERO_WIDTH_CHARS))
    line_endings = LineEndingSummary(
        expected=detect_line_endings(expected),
        actual=detect_line_endings(actual),
    )
    unicode_analysis = _analyze_unicode(expected, actual)

    whitespace_issues = _detect_whitespace_issues(
        expected, actual, expected_diff, actual_diff, diff_codes, line_endings,
    )
    encoding_issues = _detect_encoding_issues(expected, actual, unicode_analysis)
    classification = _classify(diff_codes)
    distribution = _compare_distribution(expected_diff, actual_diff)
    code_report = format_code_report(diff_codes)
    visual_diff = diff(expected, actual).format()

    report = render_report(
        code_report=code_report,
        unique_count=len(all_codes),
        diff_length=len(expected_diff) + len(actual_diff),
        classification=classification,
        whitespace_issues=whitespace_issues,
        encoding_issues=encoding_issues,
        zero_width_chars=zero_width,
        distribution=distribution,
        visual_diff=visual_diff,
        expected_diff=expected_diff,
        actual_diff=actual_diff,
    )

    return CharCodeData(
        report=report,
        unique_count=len(all_codes),
        has_zero_width=bool(zero_width),
        whitespace_issues=whitespace_issues,
        encoding_issues=encoding_issues,
        code_report=code_report,
        diff_length=len(expected_diff) + len(actual_diff),
        classification=classification,
        distribution=distribution,
        unicode_analysis=unicode_analysis,
        line_endings=line_endings,
        zero_width_chars=zero_width,
    )


def _classify(codes: Counter[int]) -> dict[CharCategory, int]:
    counts: Counter[CharCategory] = Counter()
    for code, count in codes.items():
        counts[classify_char(chr(code))] += count
    return {category: counts[category] for category in CharCategory if counts[category]}


def _detect_whitespace_issues(
    expected: str,
    actual: str,
    expected_diff: str,
    actual_diff: str,
    diff_codes: Counter[int],
    line_endings: LineEndingSummary,
) -> frozenset[WhitespaceIssue]:
    issues: set[WhitespaceIssue] = set()

    indent_chars = set("".join(_INDENT.findall(expected) + _INDENT.findall(actual)))
    if {" ", "\t"} <= indent_chars or (diff_codes[0x09] and diff_codes[0x20]):
        issues.add(WhitespaceIssue.TABS_VS_SPACES)

    if len(line_endings.styles) > 1:
        issues.add(WhitespaceIssue.MIXED_LINE_ENDINGS)

    expected_tails = _trailing_blanks(expected)
    actual_tails = _trailing_blanks(actual)
    if expected_tails != actual_tails and any(expected_tails + actual_tails):
        issues.add(WhitespaceIssue.TRAILING_WHITESPACE)

    if diff_codes[0x20] > EXTRA_SPACES_LIMIT:
        issues.add(WhitespaceIssue.EXTRA_SPACES)

    if any(classify_char(ch) is CharCategory.NON_BREAKING_SPACE for ch in expected_diff + actual_diff):
        issues.add(WhitespaceIssue.NON_BREAKING_SPACE)

    return frozenset(issues)


def _trailing_blanks(text: str) -> list[str]:
    """Trailing spaces/tabs of each line."""
    return [line[len(line.rstrip(" \t")):] for line in _LINE_BREAK.split(text)]


def _detect_encoding_issues(
    expected: str,
    actual: str,
    unicode_analysis: UnicodeAnalysis,
) -> frozenset[EncodingIssue]:
    issues: set[EncodingIssue] = set()
    bom = chr(BOM)

    if chr(REPLACEMENT_CHAR) in expected or chr(REPLACEMENT_CHAR) in actual:
        issues.add(EncodingIssue.INVALID_SEQUENCE)

    misplaced_bom = bom in expected[1:] or bom in actual[1:]
    if misplaced_bom or expected.startswith(bom) != actual.startswith(bom):
        issues.add(EncodingIssue.UNEXPECTED_BOM)

    if any(
        classify_char(ch) is CharCategory.CONTROL and ord(ch) not in _ALLOWED_CONTROLS
        for ch in expected + actual
    ):
        issues.add(EncodingIssue.NON_PRINTABLE)

    if unicode_analysis.normalization_mismatch:
        issues.add(EncodingIssue.NORMALIZATION_MISMATCH)

    return frozenset(issues)


def _compare_distribution(expected_diff: str, actual_diff: str) -> CharDistribution:
    exp_codes = Counter(map(ord, expected_diff))
    act_codes = Counter(map(ord, actual_diff))
    return CharDistribution(
        only_in_expected={c: n for c, n in sorted(exp_codes.items()) if c not in act_codes},
        only_in_actual={c: n for c, n in sorted(act_codes.items()) if c not in exp_codes},
        in_both={c: (n, act_codes[c]) for c, n in sorted(exp_codes.items()) if c in act_codes},
    )


def _analyze_unicode(expected: str, actual: str) -> UnicodeAnalysis:
    exp_nfc = unicodedata.normalize("NFC", expected)
    act_nfc = unicodedata.normalize("NFC", actual)
    return UnicodeAnalysis(
        has_composed=(
            unicodedata.normalize("NFD", expected) != expected
            or unicodedata.normalize("NFD", actual) != actual
        ),
        has_decomposed=exp_nfc != expected or act_nfc != actual,
        normalization_mismatch=expected != actual and exp_nfc == act_nfc,
    )
