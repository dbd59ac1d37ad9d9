"""
Cache-aside layer in front of a slower backend (normally the relational one).

Places and word-index entries have separate bounded caches whose entries
expire a fixed time after being written. Concurrent misses on the same key
collapse into a single backend fetch: the first caller fetches, the others
wait on its future and see the same value or the same failure.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future
from typing import Any, Callable, Generic, Hashable, Optional, TypeVar

from place_standardizer.models import Place
from place_standardizer.store.base import PlaceStore, StoreError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


class ExpiringCache(Generic[K, V]):
    """Size-bounded, expire-after-write map. Not thread-safe on its own."""

    def __init__(self, max_size: int, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[K, tuple[float, V]] = OrderedDict()

    def get(self, key: K) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return _MISSING
        self._entries.move_to_end(key)
        return value

    def put(self, key: K, value: V) -> None:
        self._entries[key] = (self._clock() + self.ttl_seconds, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)


class _SingleFlightCache(Generic[K, V]):
    def __init__(self, cache: ExpiringCache[K, V], loader: Callable[[K], V],
                 cacheable: Callable[[V], bool] = lambda v: True):
        self.cache = cache
        self._loader = loader
        self._cacheable = cacheable
        self._lock = threading.Lock()
        self._inflight: dict[K, Future] = {}
        self.fetches = 0

    def get(self, key: K) -> V:
        with self._lock:
            value = self.cache.get(key)
            if value is not _MISSING:
                return value
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future
                self.fetches += 1

        if not owner:
            return future.result()

        try:
            value = self._loader(key)
        except StoreError as e:
            error = e
        except Exception as e:
            error = StoreError(f"{type(e).__name__}: {e}")
            error.__cause__ = e
        else:
            with self._lock:
                if self._cacheable(value):
                    self.cache.put(key, value)
                del self._inflight[key]
            future.set_result(value)
            return value

        with self._lock:
            del self._inflight[key]
        future.set_exception(error)
        raise error


class CachedPlaceStore(PlaceStore):
    name = "cached"

    def __init__(
        self,
        backend: PlaceStore,
        place_cache_size: int = 50000,
        place_cache_ttl: float = 3600,
        word_cache_size: int = 50000,
        word_cache_ttl: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.backend = backend
        self._places: _SingleFlightCache[int, Optional[Place]] = _SingleFlightCache(
            ExpiringCache(place_cache_size, place_cache_ttl, clock),
            backend.fetch_place,
            cacheable=lambda p: p is not None,
        )
        self._words: _SingleFlightCache[str, tuple[int, ...]] = _SingleFlightCache(
            ExpiringCache(word_cache_size, word_cache_ttl, clock),
            lambda w: tuple(backend.fetch_word(w)),
        )
        logger.info("Place cache: %d entries / %ss, word cache: %d entries / %ss",
                    place_cache_size, place_cache_ttl, word_cache_size, word_cache_ttl)

    def fetch_place(self, place_id: int) -> Optional[Place]:
        return self._places.get(place_id)

    def fetch_word(self, word: str) -> list[int]:
        return list(self._words.get(word))

    @property
    def backend_fetches(self) -> dict[str, int]:
        return {"places": self._places.fetches, "words": self._words.fetches}

    def close(self) -> None:
        self.backend.close()
