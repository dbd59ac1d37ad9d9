"""
Tests for per-level token construction and backoff.
"""

from __future__ import annotations

import pytest

from conftest import SPRINGFIELD
from place_standardizer.matcher import LevelMatcher
from place_standardizer.models import Place
from place_standardizer.store.memory import MemoryPlaceStore
from place_standardizer.store.records import derive_word_index


@pytest.fixture(scope="module")
def matcher(rules, sample_store):
    return LevelMatcher(rules, sample_store)


class TestNameTypeToken:
    def test_plain_name(self, matcher):
        token = matcher.name_type_token(["new", "york"])
        assert token.name == "newyork"
        assert token.type is None

    def test_trailing_type_word_split_off(self, matcher):
        token = matcher.name_type_token(["cook", "county"])
        assert (token.name, token.type) == ("cook", "county")

    def test_abbreviations_expanded(self, matcher):
        token = matcher.name_type_token(["cook", "co"])
        assert (token.name, token.type) == ("cook", "county")
        assert matcher.name_type_token(["st", "louis"]).name == "saintlouis"

    def test_lone_word_not_expanded(self, matcher):
        assert matcher.name_type_token(["no"]).name == "no"
        assert matcher.name_type_token(["mill", "no"], skip=1).name == "no"

    def test_inner_type_words_stay_in_name(self, matcher):
        token = matcher.name_type_token(["mill", "creek", "cemetery"])
        assert (token.name, token.type) == ("millcreek", "cemetery")
        assert matcher.name_type_token(["county", "cork"]).name == "countycork"

    def test_only_type_words(self, matcher):
        token = matcher.name_type_token(["county"])
        assert (token.name, token.type) == ("county", None)

    def test_connector_ends_token(self, matcher):
        assert matcher.name_type_token(["springfield", "or", "chicago"]).name == "chicago"
        assert matcher.name_type_token(["york", "now", "toronto"]).name == "toronto"

    def test_connector_at_skip_position_kept(self, matcher):
        assert matcher.name_type_token(["or", "chicago"]).name == "orchicago"

    def test_trailing_connector_ends_token(self, matcher):
        assert matcher.name_type_token(["springfield", "now"]).name is None
        assert matcher.name_type_token(["springfield", "or"]).name is None

    def test_skip(self, matcher):
        assert matcher.name_type_token(["downtown", "springfield"], skip=1).name == "springfield"


class TestMatch:
    def test_direct_hit(self, matcher):
        match = matcher.match(["springfield"])
        assert match.ids == [SPRINGFIELD]
        assert match.skipped == 0

    def test_backoff(self, matcher):
        match = matcher.match(["downtown", "springfield"])
        assert match.ids == [SPRINGFIELD]
        assert match.skipped == 1
        assert matcher.skipped_words(["downtown", "springfield"], 1) == ["downtown"]

    def test_skipped_noise_and_type_words_dropped(self, matcher):
        words = ["near", "county", "springfield"]
        match = matcher.match(words)
        assert match.skipped == 2
        assert matcher.skipped_words(words, 2) == []

    def test_miss(self, matcher):
        assert matcher.match(["atlantis"]) is None
        assert matcher.match(["lost", "city", "atlantis"]) is None

    def test_bare_particle(self, rules):
        places = [Place(id=1, name="La"), Place(id=2, name="Grande")]
        store = MemoryPlaceStore(places, derive_word_index(places, rules))
        matcher = LevelMatcher(rules, store)
        assert matcher.match(["la"]).ids == [1]
        # "la" on its own inside a longer phrase is not a place
        assert matcher.match(["vista", "la"]) is None
        assert matcher.match(["la", "grande"]).ids == [2]
