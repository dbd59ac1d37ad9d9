"""Base class for gazetteer place stores."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from place_standardizer.models import Place

logger = logging.getLogger(__name__)

MAX_FULL_NAME_DEPTH = 10


class StoreError(RuntimeError):
    """A backend could not answer (connectivity, malformed record, ...)."""


class PlaceStore(ABC):
    """
    Uniform access to place records and the inverted word index.

    Backends implement the two fetch primitives and may raise StoreError.
    Callers use get_place / lookup_word, which never raise: a backend
    failure is logged and reads as NotFound / Empty.
    """

    name: str = "abstract"

    @abstractmethod
    def fetch_place(self, place_id: int) -> Optional[Place]:
        """Return the place, None if absent. May raise StoreError."""

    @abstractmethod
    def fetch_word(self, word: str) -> list[int]:
        """Return the sorted ids indexed under word. May raise StoreError."""

    def get_place(self, place_id: int) -> Optional[Place]:
        try:
            place = self.fetch_place(place_id)
        except StoreError as e:
            logger.error("Error loading place %d: %s", place_id, e)
            return None
        if place is None:
            logger.error("Place not found: %d", place_id)
        return place

    def lookup_word(self, word: str) -> list[int]:
        if not word:
            return []
        try:
            return self.fetch_word(word)
        except StoreError as e:
            logger.error("Error loading place words for '%s': %s", word, e)
            return []

    def full_name(self, place: Place) -> str:
        """
        "Springfield, Sangamon, Illinois, United States".
        Returns "" for chains deeper than MAX_FULL_NAME_DEPTH (likely a cycle).
        """
        names = [place.name]
        located_in = place.located_in_id
        depth = 0
        while located_in > 0:
            depth += 1
            if depth >= MAX_FULL_NAME_DEPTH:
                return ""
            parent = self.get_place(located_in)
            if parent is None:
                break
            names.append(parent.name)
            located_in = parent.located_in_id
        return ", ".join(names)

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""
