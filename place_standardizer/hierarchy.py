"""
Ancestor / descendant queries over the place graph.

A place has one primary parent (located_in_id) and any number of secondary
parents (also_located_in_ids), so the hierarchy is a DAG. Walks work purely
on ids through the store and keep a visited set: a parent cycle in bad data
ends the walk as a non-match instead of recursing forever.
"""

from __future__ import annotations

from typing import Collection, Iterable, Optional

from place_standardizer.store.base import PlaceStore


class Hierarchy:
    def __init__(self, store: PlaceStore):
        self.store = store

    def _parents(self, place_id: int) -> list[int]:
        place = self.store.get_place(place_id)
        return place.parent_ids if place is not None else []

    def is_ancestor_of_any(self, place_id: int, ids: Collection[int],
                           _visited: Optional[set[int]] = None) -> bool:
        """True if some ancestor of place_id (not place_id itself) is in ids."""
        visited = _visited if _visited is not None else {place_id}
        for parent_id in self._parents(place_id):
            if parent_id in ids:
                return True
            if parent_id in visited:
                continue
            visited.add(parent_id)
            if self.is_ancestor_of_any(parent_id, ids, visited):
                return True
        return False

    def is_descendant_of(self, place_id: int, ancestor_id: int,
                         _visited: Optional[set[int]] = None) -> bool:
        """True if place_id is ancestor_id or lies anywhere beneath it."""
        if place_id == ancestor_id:
            return True
        visited = _visited if _visited is not None else set()
        visited.add(place_id)
        for parent_id in self._parents(place_id):
            if parent_id in visited:
                continue
            if self.is_descendant_of(parent_id, ancestor_id, visited):
                return True
        return False

    def filter_descendants(self, ids: Iterable[int], ancestors: Collection[int]) -> list[int]:
        """Members of ids located (directly or transitively) in one of ancestors."""
        ancestor_set = set(ancestors)
        return [i for i in ids if self.is_ancestor_of_any(i, ancestor_set)]

    def remove_redundant_ancestors(self, ids: Optional[Collection[int]]) -> list[int]:
        """
        Drop every member that is an ancestor of another member, keeping the
        most specific places. Order is preserved; the operation is idempotent.
        """
        if not ids:
            return []
        members = list(dict.fromkeys(ids))
        return [
            candidate for candidate in members
            if not any(
                other != candidate and self.is_ancestor_of_any(other, {candidate})
                for other in members
            )
        ]
