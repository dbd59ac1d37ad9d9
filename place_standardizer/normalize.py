"""
Place text normalization and tokenization.

A place description such as "St. Mary's, Cook Co., Illinois" becomes
ordered word groups, most specific first:

    [["st", "marys"], ["cook", "co"], ["illinois"]]

Words are case-folded, stripped of diacritics and of anything that is not a
letter or digit. Index keys and match tokens are the normalized words of a
name concatenated without a separator ("newyork").
"""

from __future__ import annotations

import re
import unicodedata

from place_standardizer.models import LevelWords

_GROUP_SPLIT_RE = re.compile(r"[,;]")
_WORD_SPLIT_RE = re.compile(r"[\s\-/.]+")


def normalize_word(word: str) -> str:
    decomposed = unicodedata.normalize("NFKD", word)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return "".join(c for c in stripped.casefold() if c.isalnum())


def split_words(text: str) -> list[str]:
    """Normalized, non-empty words of a single group of text."""
    words = (normalize_word(w) for w in _WORD_SPLIT_RE.split(text))
    return [w for w in words if w]


def normalize_name(text: str) -> str:
    return "".join(split_words(text))


def tokenize(text: str) -> LevelWords:
    if not text:
        return []
    levels: LevelWords = []
    for group in _GROUP_SPLIT_RE.split(text):
        words = split_words(group)
        if words:
            levels.append(words)
    return levels
