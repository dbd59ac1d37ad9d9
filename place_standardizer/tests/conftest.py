"""Shared fixtures: the bundled rules and sample gazetteer, and a recording handler."""

from __future__ import annotations

import pytest

from place_standardizer.config import DATA_DIR, load_rules
from place_standardizer.diagnostics import ErrorHandler
from place_standardizer.engine import Standardizer
from place_standardizer.store.local import load_dataset

SAMPLE_DIR = DATA_DIR / "sample"

# Ids in the sample gazetteer
USA, ILLINOIS, SANGAMON, SPRINGFIELD, COOK_COUNTY, CHICAGO = 1500, 1501, 1502, 1503, 1504, 1505
OHIO, BUTLER, OXFORD_OHIO, ENGLAND, OXFORDSHIRE, OXFORD_ENGLAND = 1506, 1507, 1508, 1509, 1510, 1511
COOK_VILLAGE, MISSOURI, SAINT_LOUIS, LAKE = 1512, 1513, 1514, 1515


class RecordingHandler(ErrorHandler):
    """Keeps every notification as (kind, payload) for assertions."""

    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.events]

    def token_not_found(self, text, levels, level, matched_parent_ids):
        self.events.append(("token_not_found", {"level": level, "ids": list(matched_parent_ids)}))

    def skipping_parent_level(self, text, levels, level, matched_place_ids):
        self.events.append(("skipping_parent_level", {"level": level, "ids": list(matched_place_ids)}))

    def type_not_found(self, text, levels, level, matched_place_ids):
        self.events.append(("type_not_found", {"level": level, "ids": list(matched_place_ids)}))

    def ambiguous(self, text, levels, matched_place_ids, top_place):
        self.events.append(("ambiguous", {"ids": list(matched_place_ids), "top": top_place.id}))

    def place_not_found(self, text, levels):
        self.events.append(("place_not_found", {"text": text}))


@pytest.fixture(scope="session")
def rules():
    return load_rules(DATA_DIR / "standardizer.json")


@pytest.fixture(scope="session")
def sample_store(rules):
    return load_dataset(SAMPLE_DIR, rules)


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def engine(rules, sample_store, handler):
    return Standardizer(rules, sample_store, error_handler=handler)
