"""
Parsing of gazetteer rows shared by every backend.

Places are flat rows:
    id | name | alt_names | types | located_in_id | also_located_in_ids |
    level | country_id | latitude | longitude | sources

List-valued columns are "~"-joined; alt names and sources are "value:tag"
pairs with an optional tag. Word index rows are "word | id,id,...".
"""

from __future__ import annotations

import gzip
import io
from pathlib import Path
from typing import IO, Iterable, Iterator, Optional, Sequence

from place_standardizer.config import StandardizerRules
from place_standardizer.models import AltName, Place, Source
from place_standardizer.normalize import split_words
from place_standardizer.store.base import StoreError

LIST_SEP = "~"


def _split_list(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [v for v in value.split(LIST_SEP) if v]


def _split_tagged(value: str) -> tuple[str, Optional[str]]:
    pos = value.find(":")
    if pos > 0:
        return value[:pos], value[pos + 1:]
    return value, None


def _to_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def parse_ids(value: Optional[str], sep: str = ",") -> list[int]:
    if not value:
        return []
    try:
        return [int(v) for v in value.split(sep) if v.strip()]
    except ValueError as e:
        raise StoreError(f"Malformed id list '{value}'") from e


def build_place(
    place_id,
    name: str,
    alt_names: Optional[str],
    types: Optional[str],
    located_in_id,
    also_located_in_ids: Optional[str],
    level,
    country_id,
    latitude=None,
    longitude=None,
    sources: Optional[str] = None,
) -> Place:
    try:
        return Place(
            id=int(place_id),
            name=name,
            alt_names=[AltName(name=n, source=s) for n, s in map(_split_tagged, _split_list(alt_names))],
            types=_split_list(types),
            located_in_id=int(located_in_id or 0),
            also_located_in_ids=parse_ids(also_located_in_ids, LIST_SEP),
            level=int(level or 0),
            country_id=int(country_id or 0),
            latitude=_to_float(latitude),
            longitude=_to_float(longitude),
            sources=[Source(source=s, id=i) for s, i in map(_split_tagged, _split_list(sources))],
        )
    except (TypeError, ValueError) as e:
        raise StoreError(f"Malformed place record {place_id!r}: {e}") from e


def place_from_fields(fields: Sequence[str]) -> Place:
    if len(fields) < 8:
        raise StoreError(f"Place row has {len(fields)} fields, expected at least 8")
    padded = list(fields) + [""] * (11 - len(fields))
    return build_place(*padded[:11])


def place_from_row(row) -> Place:
    """Build a Place from a relational row (mapping with the original column names)."""
    return build_place(
        row["id"],
        row["name"],
        row["alt_names"],
        row["types"],
        row["located_in_id"],
        row["also_located_in_ids"],
        row["level"],
        row["country_id"],
        row["latitude"],
        row["longitude"],
        row["sources"],
    )


# ── Dataset files ─────────────────────────────────────────────────────

def open_dataset_file(path: Path) -> IO[str]:
    """Open a dataset file, transparently decompressing a .gz sibling."""
    if path.exists():
        return path.open("r", encoding="utf-8")
    gz_path = path.with_name(path.name + ".gz")
    if gz_path.exists():
        return io.TextIOWrapper(gzip.open(gz_path, "rb"), encoding="utf-8")
    raise FileNotFoundError(path)


def read_places(reader: Iterable[str], sep: str = "\t") -> Iterator[Place]:
    for line in reader:
        line = line.rstrip("\r\n")
        if not line.strip():
            continue
        yield place_from_fields(line.split(sep))


def read_word_index(reader: Iterable[str], sep: str = "\t") -> Iterator[tuple[str, list[int]]]:
    for line in reader:
        line = line.rstrip("\r\n")
        if not line.strip():
            continue
        word, _, ids = line.partition(sep)
        yield word, sorted(parse_ids(ids))


def index_keys(place: Place, rules: StandardizerRules) -> set[str]:
    """
    Word index keys for a place: its name and alt names, each also with
    trailing type words dropped ("Sangamon County" -> "sangamoncounty",
    "sangamon"). Multi-word names are also keyed with abbreviations expanded
    ("Mt. Vernon" -> "mountvernon"), the form the matcher looks up.
    """
    keys: set[str] = set()
    for text in [place.name, *(a.name for a in place.alt_names)]:
        words = split_words(text)
        if not words:
            continue
        variants = [words]
        if len(words) > 1:
            variants.append([rules.expand(w) for w in words])
        for variant in variants:
            keys.add("".join(variant))
            end = len(variant)
            while end > 1 and rules.is_type_word(variant[end - 1]):
                end -= 1
            keys.add("".join(variant[:end]))
    return keys


def derive_word_index(places: Iterable[Place], rules: StandardizerRules) -> dict[str, list[int]]:
    index: dict[str, set[int]] = {}
    for place in places:
        for key in index_keys(place, rules):
            index.setdefault(key, set()).add(place.id)
    return {k: sorted(v) for k, v in index.items()}
