"""
Place standardization engine.

Levels are walked from the most general (last group) to the most specific
(first group). Each level's matches are constrained to descendants of the
previous level's matches; a level that cannot be attached is reported and
ignored, and a skippable parent level (anything below a country, or below a
state of the special-case country) may be bypassed in favour of the
grandparent.

The engine holds no per-call state and may be shared across threads.
"""

from __future__ import annotations

import logging
from typing import Collection, Optional

from place_standardizer.config import Settings, StandardizerRules, get_settings, load_rules
from place_standardizer.diagnostics import CallDiagnostics, ErrorHandler
from place_standardizer.hierarchy import Hierarchy
from place_standardizer.matcher import LevelMatcher
from place_standardizer.models import Mode, Place, PlaceScore
from place_standardizer.normalize import normalize_name, tokenize
from place_standardizer.scoring import Scorer
from place_standardizer.store.base import PlaceStore
from place_standardizer.store.factory import create_store

logger = logging.getLogger(__name__)

TOP_LEVEL = 1
STATE_LEVEL = 2
# Kept in generated place names even though it is a type word
KEEP_TYPE_WORDS = frozenset({"cemetery"})


class Standardizer:
    def __init__(
        self,
        rules: StandardizerRules,
        store: PlaceStore,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.rules = rules
        self.store = store
        self.error_handler = error_handler
        self.hierarchy = Hierarchy(store)
        self.scorer = Scorer(rules)
        self.matcher = LevelMatcher(rules, store)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> "Standardizer":
        """Build the engine at startup. Raises ConfigError if that is impossible."""
        settings = settings or get_settings()
        rules = load_rules(settings.rules_path)
        store = create_store(settings, rules)
        return cls(rules, store, error_handler)

    def close(self) -> None:
        self.store.close()

    # ── Public API ────────────────────────────────────────────────────

    def resolve(
        self,
        text: str,
        default_country: Optional[str] = None,
        mode: Mode = Mode.BEST,
        num_results: int = 1,
    ) -> list[PlaceScore]:
        return self._resolve(text, default_country, mode, num_results, self.error_handler)

    def resolve_place(self, text: str, default_country: Optional[str] = None) -> Optional[Place]:
        results = self.resolve(text, default_country)
        return results[0].place if results else None

    def get_place(self, place_id: int) -> Optional[Place]:
        return self.store.get_place(place_id)

    def full_name(self, place: Place) -> str:
        return self.store.full_name(place)

    def generate_place_name(self, words: list[str]) -> str:
        """Capitalized words with trailing type words dropped ("cemetery" stays)."""
        end = len(words)
        while end > 0 and self.rules.is_type_word(words[end - 1]) and words[end - 1] not in KEEP_TYPE_WORDS:
            end -= 1
        # all type words: keep them all
        if end == 0:
            end = len(words)
        return " ".join(w[:1].upper() + w[1:].lower() for w in words[:end])

    # ── Resolution ────────────────────────────────────────────────────

    def _resolve(
        self,
        text: str,
        default_country: Optional[str],
        mode: Mode,
        num_results: int,
        handler: Optional[ErrorHandler],
    ) -> list[PlaceScore]:
        levels = tokenize(text)
        diag = CallDiagnostics(handler, text, levels)
        current_ids: Optional[list[int]] = None
        previous_ids: Optional[list[int]] = None
        current_token: Optional[str] = None
        last_found_level = -1

        level = len(levels) - 1
        while level >= 0:
            words = levels[level]
            match = self.matcher.match(words)
            if match is not None and match.skipped > 0:
                new_level = self.matcher.skipped_words(words, match.skipped)
                if new_level:
                    levels.insert(level, new_level)
                    level += 1

            if match is None:
                if self._has_content(words):
                    diag.token_not_found(level, self.hierarchy.remove_redundant_ancestors(current_ids))
                level -= 1
                continue

            ids = match.ids
            if current_ids is not None:
                matching = self.hierarchy.filter_descendants(ids, current_ids)
                if not matching and self._is_skippable(current_ids):
                    # try attaching to the grandparent level
                    if previous_ids:
                        matching = self.hierarchy.filter_descendants(ids, previous_ids)
                        if matching:
                            current_ids = previous_ids
                            diag.skipping_parent_level(level, self.hierarchy.remove_redundant_ancestors(matching))
                    # a country or special-case state stands on its own
                    if not matching and not self._is_skippable(ids):
                        matching = ids
                        current_ids = None
                        diag.skipping_parent_level(level, self.hierarchy.remove_redundant_ancestors(matching))

                if not matching:
                    if self._has_content(words):
                        diag.token_not_found(level, self.hierarchy.remove_redundant_ancestors(current_ids))
                    level -= 1
                    continue
                ids = matching
            elif len(ids) > 1 and default_country:
                narrowed = self._filter_default_country(ids, default_country)
                if narrowed:
                    ids = narrowed
            last_found_level = level

            if len(ids) > 1 and match.token.type:
                typed = self._filter_type(ids, match.token.type)
                if typed:
                    ids = typed
                else:
                    diag.type_not_found(level, self.hierarchy.remove_redundant_ancestors(ids))

            previous_ids = current_ids
            current_ids = ids
            current_token = match.token.name
            level -= 1

        if current_ids is None:
            # reported even if another diagnostic fired earlier
            if any(self._has_content(words) for words in levels):
                diag.place_not_found()
            return []

        if mode == Mode.REQUIRED and last_found_level != 0:
            return []

        candidates = self.hierarchy.remove_redundant_ancestors(current_ids)
        places = [p for p in (self.store.get_place(i) for i in candidates) if p is not None]
        if len(places) > 1:
            ranked = self.scorer.rank(current_token, places, len(places))
            diag.ambiguous(candidates, ranked[0].place)
            results = ranked[:max(0, num_results)]
        elif places:
            results = [PlaceScore(place=places[0], score=self.scorer.score(current_token, places[0]))]
        else:
            results = []

        if results and mode == Mode.NEW and last_found_level > 0:
            placeholder = Place(
                name=self.generate_place_name(levels[last_found_level - 1]),
                located_in_id=results[0].place.id,
            )
            results = [PlaceScore(place=placeholder, score=0.0)]
        return results

    # ── Helpers ───────────────────────────────────────────────────────

    def _has_content(self, words: list[str]) -> bool:
        return any(not self.rules.is_noise_word(w) for w in words)

    def _is_skippable(self, ids: Collection[int]) -> bool:
        """Once a country or a special-case state is matched it can't be skipped over."""
        for place_id in ids:
            place = self.store.get_place(place_id)
            if place is None:
                continue
            if place.level == TOP_LEVEL or (
                place.level == STATE_LEVEL and place.country_id == self.rules.special_country_id
            ):
                return False
        return True

    def _filter_default_country(self, ids: list[int], default_country: str) -> list[int]:
        """Keep top-level places and places in (or also located in) the default country."""
        results = self._resolve(default_country, None, Mode.BEST, 1, None)
        if not results:
            logger.debug("Default country '%s' not found", default_country)
            return []
        country = results[0].place
        matching = []
        for place_id in ids:
            place = self.store.get_place(place_id)
            if place is None:
                continue
            if (place.level == TOP_LEVEL or place.country_id == country.id
                    or self.hierarchy.is_descendant_of(place_id, country.id)):
                matching.append(place_id)
        return matching

    def _filter_type(self, ids: list[int], type_token: str) -> list[int]:
        """Places whose primary name or one of whose types contains the type token."""
        matching = []
        for place_id in ids:
            place = self.store.get_place(place_id)
            if place is None:
                continue
            if type_token in normalize_name(place.name) or any(
                type_token in normalize_name(t) for t in place.types
            ):
                matching.append(place_id)
        return matching
