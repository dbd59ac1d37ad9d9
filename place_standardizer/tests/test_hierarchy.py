"""
Tests for ancestor / descendant queries over the place graph.
"""

from __future__ import annotations

import pytest

from conftest import (
    CHICAGO, COOK_COUNTY, COOK_VILLAGE, ENGLAND, ILLINOIS, LAKE, OXFORD_ENGLAND, OXFORD_OHIO,
    SPRINGFIELD, USA,
)
from place_standardizer.hierarchy import Hierarchy
from place_standardizer.models import Place
from place_standardizer.store.memory import MemoryPlaceStore


@pytest.fixture(scope="module")
def hierarchy(sample_store):
    return Hierarchy(sample_store)


class TestAncestors:
    def test_transitive_ancestor(self, hierarchy):
        assert hierarchy.is_ancestor_of_any(SPRINGFIELD, {ILLINOIS})
        assert hierarchy.is_ancestor_of_any(SPRINGFIELD, {ENGLAND, USA})

    def test_self_is_not_an_ancestor(self, hierarchy):
        assert not hierarchy.is_ancestor_of_any(SPRINGFIELD, {SPRINGFIELD})

    def test_unrelated(self, hierarchy):
        assert not hierarchy.is_ancestor_of_any(OXFORD_ENGLAND, {USA})

    def test_secondary_parent(self, hierarchy):
        assert hierarchy.is_ancestor_of_any(LAKE, {COOK_COUNTY})


class TestDescendants:
    def test_identity(self, hierarchy):
        assert hierarchy.is_descendant_of(SPRINGFIELD, SPRINGFIELD)

    def test_direction(self, hierarchy):
        assert hierarchy.is_descendant_of(CHICAGO, USA)
        assert not hierarchy.is_descendant_of(USA, CHICAGO)

    def test_secondary_parent(self, hierarchy):
        assert hierarchy.is_descendant_of(LAKE, COOK_COUNTY)

    def test_filter_descendants(self, hierarchy):
        assert hierarchy.filter_descendants([OXFORD_OHIO, OXFORD_ENGLAND], [ENGLAND]) == [OXFORD_ENGLAND]
        assert hierarchy.filter_descendants([OXFORD_OHIO, OXFORD_ENGLAND], [ILLINOIS]) == []


class TestRemoveRedundantAncestors:
    def test_keeps_most_specific(self, hierarchy):
        assert hierarchy.remove_redundant_ancestors([ILLINOIS, SPRINGFIELD, OXFORD_OHIO]) == [
            SPRINGFIELD, OXFORD_OHIO,
        ]
        assert hierarchy.remove_redundant_ancestors([COOK_COUNTY, COOK_VILLAGE]) == [COOK_VILLAGE]

    def test_unrelated_members_kept_in_order(self, hierarchy):
        assert hierarchy.remove_redundant_ancestors([OXFORD_ENGLAND, OXFORD_OHIO]) == [
            OXFORD_ENGLAND, OXFORD_OHIO,
        ]

    def test_idempotent(self, hierarchy):
        ids = [USA, ILLINOIS, COOK_COUNTY, COOK_VILLAGE, LAKE, ENGLAND, OXFORD_ENGLAND]
        once = hierarchy.remove_redundant_ancestors(ids)
        assert hierarchy.remove_redundant_ancestors(once) == once
        assert once == [COOK_VILLAGE, LAKE, OXFORD_ENGLAND]

    def test_empty(self, hierarchy):
        assert hierarchy.remove_redundant_ancestors(None) == []
        assert hierarchy.remove_redundant_ancestors([]) == []


class TestCycles:
    @pytest.fixture
    def cyclic(self):
        store = MemoryPlaceStore([
            Place(id=1, name="A", located_in_id=2),
            Place(id=2, name="B", located_in_id=1),
            Place(id=3, name="C"),
        ])
        return Hierarchy(store)

    def test_walks_terminate(self, cyclic):
        assert not cyclic.is_ancestor_of_any(1, {3})
        assert not cyclic.is_descendant_of(1, 3)
        assert cyclic.is_descendant_of(1, 2)

    def test_missing_parent_is_a_dead_end(self):
        hierarchy = Hierarchy(MemoryPlaceStore([Place(id=1, name="A", located_in_id=99)]))
        assert not hierarchy.is_ancestor_of_any(1, {5})
        assert hierarchy.is_ancestor_of_any(1, {99})
