"""
Deterministic ranking of competing candidates.

score = level weight (by country size bucket and place level)
      + primary_match_weight if the primary name contains the matched token
      + 1 / len(primary name), which favours shorter canonical names
"""

from __future__ import annotations

from typing import Iterable, Optional

from place_standardizer.config import StandardizerRules
from place_standardizer.models import Place, PlaceScore
from place_standardizer.normalize import normalize_name


class Scorer:
    def __init__(self, rules: StandardizerRules):
        self.rules = rules

    def score(self, matched_token: Optional[str], place: Place) -> float:
        weights = self.rules.level_weights(place.country_id)
        level = max(1, min(self.rules.max_levels, place.level))
        score = weights[level - 1]

        if matched_token and matched_token in normalize_name(place.name):
            score += self.rules.primary_match_weight

        if place.name:
            score += 1.0 / len(place.name)
        return score

    def rank(self, matched_token: Optional[str], places: Iterable[Place],
             num_results: int) -> list[PlaceScore]:
        """Highest score first; equal scores by ascending id; truncated."""
        scored = [PlaceScore(place=p, score=self.score(matched_token, p)) for p in places]
        scored.sort(key=lambda ps: (-ps.score, ps.place.id))
        return scored[:max(0, num_results)]
