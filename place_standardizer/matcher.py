"""
Per-level token construction and backoff.

The words of one level are joined into a name token, trailing type words
("Cook County" -> name "cook", type "county") split off into a type token.
When the name token is not in the word index, leading words are skipped one
at a time; the caller pushes the skipped words down as a new, more specific
level (for people who don't use commas).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from place_standardizer.config import StandardizerRules
from place_standardizer.store.base import PlaceStore

# Anything left of these words is an older or alternative name: "X or Y", "X now Y"
CONNECTOR_WORDS = frozenset({"or", "now"})
# Particles that must not match on their own inside a longer phrase
BARE_PARTICLES = frozenset({"de", "la"})


@dataclass(frozen=True)
class NameTypeToken:
    name: Optional[str]
    type: Optional[str] = None


@dataclass(frozen=True)
class LevelMatch:
    ids: list[int]
    token: NameTypeToken
    skipped: int


class LevelMatcher:
    def __init__(self, rules: StandardizerRules, store: PlaceStore):
        self.rules = rules
        self.store = store

    def name_type_token(self, words: list[str], skip: int = 0) -> NameTypeToken:
        buf: list[str] = []
        type_token: Optional[str] = None
        found_name_word = False
        # Expanding a lone word would turn places like "No, Niigata" into "North"
        expand = len(words) - skip > 1

        for i in range(len(words) - 1, skip - 1, -1):
            word = words[i]
            if not word:
                continue
            if i > skip and word in CONNECTOR_WORDS:
                break
            if expand:
                word = self.rules.expand(word)
            if word not in self.rules.type_words:
                if not found_name_word and buf:
                    type_token = "".join(buf)
                    buf = []
                found_name_word = True
            buf.insert(0, word)

        return NameTypeToken(name="".join(buf) or None, type=type_token)

    def match(self, words: list[str]) -> Optional[LevelMatch]:
        """Look the level up, skipping up to all but one leading word."""
        for skip in range(len(words)):
            token = self.name_type_token(words, skip)
            if not token.name:
                continue
            ids = self.store.lookup_word(token.name)
            if not ids:
                continue
            if token.name in BARE_PARTICLES and len(words) > 1:
                continue
            return LevelMatch(ids=ids, token=token, skipped=skip)
        return None

    def skipped_words(self, words: list[str], skipped: int) -> list[str]:
        """Skipped leading words worth matching as their own level."""
        return [
            w for w in words[:skipped]
            if not self.rules.is_noise_word(w) and not self.rules.is_type_word(w)
        ]
