"""
Diagnostic notifications raised while standardizing a place.

Diagnostics are expected and non-fatal, so they are delivered to an injected
handler rather than raised. A handler may be called from several threads at
once when one engine serves concurrent requests.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from typing import Collection, Optional

from place_standardizer.models import LevelWords, Place

logger = logging.getLogger(__name__)

TOKEN_NOT_FOUND = "token_not_found"
SKIPPING_PARENT_LEVEL = "skipping_parent_level"
TYPE_NOT_FOUND = "type_not_found"
AMBIGUOUS = "ambiguous"
PLACE_NOT_FOUND = "place_not_found"


class ErrorHandler:
    """Base handler: every notification is a no-op. Override what you need."""

    def token_not_found(self, text: str, levels: LevelWords, level: int,
                        matched_parent_ids: Collection[int]) -> None:
        pass

    def skipping_parent_level(self, text: str, levels: LevelWords, level: int,
                              matched_place_ids: Collection[int]) -> None:
        pass

    def type_not_found(self, text: str, levels: LevelWords, level: int,
                       matched_place_ids: Collection[int]) -> None:
        pass

    def ambiguous(self, text: str, levels: LevelWords, matched_place_ids: Collection[int],
                  top_place: Place) -> None:
        pass

    def place_not_found(self, text: str, levels: LevelWords) -> None:
        pass


class LoggingErrorHandler(ErrorHandler):
    """Write every diagnostic to the log."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def token_not_found(self, text, levels, level, matched_parent_ids):
        self.log.info("Token not found: '%s' level %d %s parents=%s",
                      text, level, levels[level] if 0 <= level < len(levels) else [],
                      sorted(matched_parent_ids))

    def skipping_parent_level(self, text, levels, level, matched_place_ids):
        self.log.info("Skipping parent level: '%s' level %d matched=%s",
                      text, level, sorted(matched_place_ids))

    def type_not_found(self, text, levels, level, matched_place_ids):
        self.log.info("Type not found: '%s' level %d matched=%s",
                      text, level, sorted(matched_place_ids))

    def ambiguous(self, text, levels, matched_place_ids, top_place):
        self.log.info("Ambiguous: '%s' %d candidates, top=%d (%s)",
                      text, len(matched_place_ids), top_place.id, top_place.name)

    def place_not_found(self, text, levels):
        self.log.warning("Place not found: '%s'", text)


class DiagnosticCounter(ErrorHandler):
    """Tally diagnostics by kind, e.g. across a batch evaluation run."""

    def __init__(self):
        self._lock = threading.Lock()
        self.counts: Counter[str] = Counter()

    def _count(self, kind: str) -> None:
        with self._lock:
            self.counts[kind] += 1

    def token_not_found(self, text, levels, level, matched_parent_ids):
        self._count(TOKEN_NOT_FOUND)

    def skipping_parent_level(self, text, levels, level, matched_place_ids):
        self._count(SKIPPING_PARENT_LEVEL)

    def type_not_found(self, text, levels, level, matched_place_ids):
        self._count(TYPE_NOT_FOUND)

    def ambiguous(self, text, levels, matched_place_ids, top_place):
        self._count(AMBIGUOUS)

    def place_not_found(self, text, levels):
        self._count(PLACE_NOT_FOUND)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self.counts)


class CallDiagnostics:
    """
    Per-call dispatch. Only the first of token_not_found /
    skipping_parent_level / type_not_found / ambiguous is delivered;
    place_not_found is always delivered.
    """

    def __init__(self, handler: Optional[ErrorHandler], text: str, levels: LevelWords):
        self.handler = handler
        self.text = text
        self.levels = levels
        self.latched = False

    def _take(self) -> bool:
        if self.handler is None or self.latched:
            return False
        self.latched = True
        return True

    def token_not_found(self, level: int, parent_ids: Collection[int]) -> None:
        if self._take():
            self.handler.token_not_found(self.text, self.levels, level, parent_ids)

    def skipping_parent_level(self, level: int, place_ids: Collection[int]) -> None:
        if self._take():
            self.handler.skipping_parent_level(self.text, self.levels, level, place_ids)

    def type_not_found(self, level: int, place_ids: Collection[int]) -> None:
        if self._take():
            self.handler.type_not_found(self.text, self.levels, level, place_ids)

    def ambiguous(self, place_ids: Collection[int], top_place: Place) -> None:
        if self._take():
            self.handler.ambiguous(self.text, self.levels, place_ids, top_place)

    def place_not_found(self) -> None:
        if self.handler is not None:
            self.handler.place_not_found(self.text, self.levels)
