"""
Local persistent gazetteer: a sqlite file holding two ordered maps.

    places(id INTEGER PRIMARY KEY, record TEXT)   -- Place as JSON
    place_words(word TEXT PRIMARY KEY, ids TEXT)  -- comma-joined sorted ids

The file is bulk-built once from the packaged TSV dataset and then reopened
read-only and memory-mapped. Each thread gets its own connection; nothing
writes to the file while the store is open.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from place_standardizer.config import ConfigError, StandardizerRules
from place_standardizer.models import Place
from place_standardizer.store.base import PlaceStore, StoreError
from place_standardizer.store.memory import MemoryPlaceStore
from place_standardizer.store.records import open_dataset_file, parse_ids

logger = logging.getLogger(__name__)

PLACES_FILE = "places.tsv"
WORDS_FILE = "place_words.tsv"

_SCHEMA = """
CREATE TABLE places (
    id INTEGER PRIMARY KEY,
    record TEXT NOT NULL
) WITHOUT ROWID;
CREATE TABLE place_words (
    word TEXT PRIMARY KEY,
    ids TEXT NOT NULL
) WITHOUT ROWID;
"""


def load_dataset(dataset_dir: Path, rules: StandardizerRules) -> MemoryPlaceStore:
    """Read places.tsv[.gz] and, if present, place_words.tsv[.gz]."""
    with open_dataset_file(dataset_dir / PLACES_FILE) as place_reader:
        try:
            word_reader = open_dataset_file(dataset_dir / WORDS_FILE)
        except FileNotFoundError:
            logger.info("No %s in %s, deriving word index from names", WORDS_FILE, dataset_dir)
            return MemoryPlaceStore.from_readers(place_reader, rules=rules, sep="\t")
        with word_reader:
            return MemoryPlaceStore.from_readers(place_reader, word_reader, sep="\t")


def build_local_store(dataset_dir: Path, db_path: Path, rules: StandardizerRules) -> dict:
    """
    Bulk-build the sqlite file from the dataset. Writes to a temporary file
    and renames it into place so readers never observe a partial build.
    Returns stats.
    """
    try:
        source = load_dataset(dataset_dir, rules)
    except (FileNotFoundError, StoreError) as e:
        raise ConfigError(f"Cannot read gazetteer dataset in {dataset_dir}: {e}") from e

    db_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = db_path.with_name(db_path.name + ".tmp")
    if tmp_path.exists():
        tmp_path.unlink()

    places = source.places()
    words = source.word_index()
    conn = sqlite3.connect(str(tmp_path))
    try:
        conn.executescript(_SCHEMA)
        conn.executemany(
            "INSERT INTO places (id, record) VALUES (?, ?)",
            ((p.id, p.model_dump_json()) for p in places),
        )
        conn.executemany(
            "INSERT INTO place_words (word, ids) VALUES (?, ?)",
            ((w, ",".join(str(i) for i in ids)) for w, ids in sorted(words.items())),
        )
        conn.commit()
    finally:
        conn.close()
    tmp_path.replace(db_path)

    stats = {"places": len(places), "words": len(words)}
    logger.info("Built local gazetteer %s: %s", db_path, stats)
    return stats


class LocalPlaceStore(PlaceStore):
    """Read-only view over a built gazetteer file."""

    name = "local"

    def __init__(self, db_path: Path, mmap_size: int = 256 * 1024 * 1024):
        self.db_path = Path(db_path)
        self.mmap_size = mmap_size
        if not self.db_path.exists():
            raise ConfigError(f"Missing gazetteer index: {self.db_path}")
        self._local = threading.local()
        self._connections: list[sqlite3.Connection] = []
        self._lock = threading.Lock()
        # Fail at startup rather than on the first lookup
        try:
            self._connection().execute("SELECT 1 FROM places LIMIT 1").fetchall()
        except sqlite3.DatabaseError as e:
            raise ConfigError(f"Corrupt gazetteer index {self.db_path}: {e}") from e

    @classmethod
    def open_or_build(
        cls,
        db_path: Path,
        dataset_dir: Path,
        rules: StandardizerRules,
        mmap_size: int = 256 * 1024 * 1024,
    ) -> "LocalPlaceStore":
        db_path = Path(db_path)
        if not db_path.exists():
            logger.info("Gazetteer index %s not found, building from %s", db_path, dataset_dir)
            build_local_store(Path(dataset_dir), db_path, rules)
        return cls(db_path, mmap_size=mmap_size)

    def _connection(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            uri = f"{self.db_path.resolve().as_uri()}?mode=ro&immutable=1"
            conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
            conn.execute(f"PRAGMA mmap_size = {int(self.mmap_size)}")
            self._local.conn = conn
            with self._lock:
                self._connections.append(conn)
        return conn

    def fetch_place(self, place_id: int) -> Optional[Place]:
        try:
            row = self._connection().execute(
                "SELECT record FROM places WHERE id = ?", (place_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        if row is None:
            return None
        try:
            return Place.model_validate_json(row[0])
        except ValidationError as e:
            raise StoreError(f"Malformed place record {place_id}: {e}") from e

    def fetch_word(self, word: str) -> list[int]:
        try:
            row = self._connection().execute(
                "SELECT ids FROM place_words WHERE word = ?", (word,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return parse_ids(row[0]) if row else []

    def close(self) -> None:
        with self._lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
        self._local = threading.local()
