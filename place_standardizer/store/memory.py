"""In-memory place store, loaded from dataset readers. Used for tests and builds."""

from __future__ import annotations

from typing import Iterable, Optional

from place_standardizer.config import StandardizerRules
from place_standardizer.models import Place
from place_standardizer.store.base import PlaceStore
from place_standardizer.store.records import derive_word_index, read_places, read_word_index


class MemoryPlaceStore(PlaceStore):
    name = "memory"

    def __init__(
        self,
        places: Iterable[Place] = (),
        word_index: Optional[dict[str, list[int]]] = None,
    ):
        self._places: dict[int, Place] = {p.id: p for p in places}
        self._words: dict[str, list[int]] = dict(word_index or {})

    @classmethod
    def from_readers(
        cls,
        place_reader: Iterable[str],
        word_reader: Optional[Iterable[str]] = None,
        rules: Optional[StandardizerRules] = None,
        sep: str = "|",
    ) -> "MemoryPlaceStore":
        """
        Load places and, when given, the word index. Without a word reader
        the index is derived from the place names (requires rules).
        """
        places = list(read_places(place_reader, sep))
        if word_reader is not None:
            words = dict(read_word_index(word_reader, sep))
        elif rules is not None:
            words = derive_word_index(places, rules)
        else:
            raise ValueError("Either a word index reader or rules are required")
        return cls(places, words)

    def fetch_place(self, place_id: int) -> Optional[Place]:
        return self._places.get(place_id)

    def fetch_word(self, word: str) -> list[int]:
        return list(self._words.get(word, ()))

    def places(self) -> list[Place]:
        return sorted(self._places.values(), key=lambda p: p.id)

    def word_index(self) -> dict[str, list[int]]:
        return dict(self._words)
