"""
Tests for candidate scoring and ranking.
"""

from __future__ import annotations

import pytest

from conftest import OXFORD_ENGLAND, OXFORD_OHIO, SAINT_LOUIS
from place_standardizer.models import Place
from place_standardizer.scoring import Scorer


@pytest.fixture(scope="module")
def scorer(rules):
    return Scorer(rules)


class TestScore:
    def test_large_country_weights(self, scorer, sample_store):
        place = sample_store.get_place(OXFORD_OHIO)
        assert scorer.score("oxford", place) == pytest.approx(0.8 + 0.3 + 1 / 6)

    def test_medium_country_weights(self, scorer, sample_store):
        place = sample_store.get_place(OXFORD_ENGLAND)
        assert scorer.score("oxford", place) == pytest.approx(0.7 + 0.3 + 1 / 6)

    def test_small_country_default(self, scorer):
        place = Place(id=1, name="Aarhus", level=2, country_id=77)
        assert scorer.score("aarhus", place) == pytest.approx(0.6 + 0.3 + 1 / 6)

    def test_primary_name_only(self, scorer, sample_store):
        # "St. Louis" is an alternate name; the bonus is for the primary name
        place = sample_store.get_place(SAINT_LOUIS)
        assert scorer.score("stlouis", place) == pytest.approx(0.8 + 1 / len("Saint Louis"))
        assert scorer.score("saintlouis", place) == pytest.approx(0.8 + 0.3 + 1 / len("Saint Louis"))

    def test_level_clamped(self, scorer):
        deep = Place(id=1, name="Deep", level=9, country_id=77)
        unset = Place(id=2, name="Unset", level=0, country_id=77)
        assert scorer.score(None, deep) == pytest.approx(0.4 + 1 / 4)
        assert scorer.score(None, unset) == pytest.approx(0.7 + 1 / 5)


class TestRank:
    def test_descending_score(self, scorer, sample_store):
        places = [sample_store.get_place(OXFORD_ENGLAND), sample_store.get_place(OXFORD_OHIO)]
        ranked = scorer.rank("oxford", places, 5)
        assert [r.place.id for r in ranked] == [OXFORD_OHIO, OXFORD_ENGLAND]
        assert ranked[0].score > ranked[1].score

    def test_ties_by_ascending_id(self, scorer):
        places = [Place(id=9, name="Twin", level=3), Place(id=3, name="Twin", level=3)]
        ranked = scorer.rank("twin", places, 2)
        assert [r.place.id for r in ranked] == [3, 9]
        assert ranked[0].score == ranked[1].score

    def test_truncated(self, scorer):
        places = [Place(id=i, name="Twin", level=3) for i in range(1, 6)]
        assert [r.place.id for r in scorer.rank("twin", places, 2)] == [1, 2]
        assert scorer.rank("twin", places, 0) == []
