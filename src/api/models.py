# src/api/models.py — v2
"""API-level models: MatchAttempt."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from charfidelity.core.models import CharCodeData, CharDiff, MatchResult
from charfidelity.tracking.models import MatchOutcome


class MatchAttempt(BaseModel):
    """Return value of FidelityEngine.match().

    ``diff`` and ``diagnostics`` compare the needle with the fuzzy match and
    are only set when the search fell back to fuzzy matching.
    """

    model_config = ConfigDict(frozen=True)

    outcome: MatchOutcome
    threshold: float
    exact_match_count: int = 0
    expected_replacements: int = 1
    match: MatchResult | None = None
    diff: CharDiff | None = None
    diagnostics: CharCodeData | None = None
    execution_time_ms: float = 0.0

    @property
    def accepted(self) -> bool:
        """True when the caller may apply its edit to ``match``."""
        return self.outcome in (MatchOutcome.EXACT_MATCH, MatchOutcome.FUZZY_MATCH)

    @property
    def replacement_count_matches(self) -> bool:
        return self.exact_match_count == self.expected_replacements
