# src/analysis/report.py — v1
"""Deterministic text rendering of a character diagnostic.

Sections always appear in the same order and issues are listed in enum
declaration order, so equal diagnostics render to equal text.
"""

from __future__ import annotations

from collections.abc import Mapping

from charfidelity.core.models import (
    CharCategory,
    CharDistribution,
    EncodingIssue,
    WhitespaceIssue,
)

CHAR_NAMES: dict[int, str] = {
    0x09: "TAB",
    0x0A: "LF",
    0x0D: "CR",
    0x20: "SPACE",
    0xA0: "NBSP",
    0x180E: "MVS",
    0x200B: "ZWSP",
    0x200C: "ZWNJ",
    0x200D: "ZWJ",
    0x200E: "LRM",
    0x200F: "RLM",
    0x2060: "WJ",
    0xFEFF: "BOM",
    0xFFFD: "REPLACEMENT",
}

_WHITESPACE_CATEGORIES = (CharCategory.TAB, CharCategory.SPACE, CharCategory.NON_BREAKING_SPACE)
_LINE_ENDING_CATEGORIES = (CharCategory.LINE_FEED, CharCategory.CARRIAGE_RETURN)
_INVISIBLE_CATEGORIES = (CharCategory.ZERO_WIDTH, CharCategory.BOM, CharCategory.CONTROL)


def char_display(code: int) -> str:
    """Printable ASCII as itself, anything else as a hex escape."""
    if 0x20 <= code <= 0x7E:
        return chr(code)
    return f"\\x{code:02x}"


def char_name(code: int) -> str:
    """Short mnemonic for well-known invisible characters.

    Other printable ASCII renders as itself, everything else as U+XXXX.
    """
    if code in CHAR_NAMES:
        return CHAR_NAMES[code]
    if 0x21 <= code <= 0x7E:
        return repr(chr(code))
    return f"U+{code:04X}"


def format_code_report(codes: Mapping[int, int]) -> str:
    """``code:count[display]`` entries sorted by code point."""
    return ",".join(
        f"{code}:{count}[{char_display(code)}]" for code, count in sorted(codes.items())
    )


def inline_codes(text: str) -> str:
    if not text:
        return "empty"
    return ",".join(str(ord(ch)) for ch in text)


def render_report(
    *,
    code_report: str,
    unique_count: int,
    diff_length: int,
    classification: Mapping[CharCategory, int],
    whitespace_issues: frozenset[WhitespaceIssue],
    encoding_issues: frozenset[EncodingIssue],
    zero_width_chars: tuple[int, ...],
    distribution: CharDistribution,
    visual_diff: str,
    expected_diff: str,
    actual_diff: str,
) -> str:
    lines = [
        "Character Analysis:",
        f"  Character codes: {code_report or 'none'}",
        f"  Unique codes: {unique_count}, Diff length: {diff_length}",
    ]

    type_lines = [
        (label, [c for c in categories if classification.get(c)])
        for label, categories in (
            ("Whitespace", _WHITESPACE_CATEGORIES),
            ("Line endings", _LINE_ENDING_CATEGORIES),
            ("Invisible", _INVISIBLE_CATEGORIES),
            ("Visible", (CharCategory.PRINTABLE, CharCategory.UNICODE)),
        )
    ]
    if any(found for _, found in type_lines):
        lines += ["", "Character Types:"]
        for label, found in type_lines:
            if found:
                counts = ", ".join(f"{c.value}x{classification[c]}" for c in found)
                lines.append(f"  {label}: {counts}")

    issues = [i.value for i in WhitespaceIssue if i in whitespace_issues]
    issues += [i.value for i in EncodingIssue if i in encoding_issues]
    if issues or zero_width_chars:
        lines += ["", "Issues Detected:"]
        lines += [f"  - {issue}" for issue in issues]
        if zero_width_chars:
            names = ", ".join(f"{char_name(c)} (U+{c:04X})" for c in zero_width_chars)
            lines.append(f"  - Zero-width characters: {names}")

    if distribution.only_in_expected or distribution.only_in_actual:
        lines += ["", "Distribution:"]
        if distribution.only_in_expected:
            lines.append(f"  Only in expected: {_counts(distribution.only_in_expected)}")
        if distribution.only_in_actual:
            lines.append(f"  Only in actual: {_counts(distribution.only_in_actual)}")

    lines += [
        "",
        "Visual Diff:",
        visual_diff,
        f"  Expected diff: {expected_diff!r} [{inline_codes(expected_diff)}]",
        f"  Actual diff:   {actual_diff!r} [{inline_codes(actual_diff)}]",
    ]
    return "\n".join(lines) + "\n"


def _counts(codes: Mapping[int, int]) -> str:
    return ", ".join(f"{char_name(code)}x{count}" for code, count in sorted(codes.items()))
