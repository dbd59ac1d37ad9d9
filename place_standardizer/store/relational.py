"""
Remote relational gazetteer queried directly per call.
Uses an asyncpg connection pool running on a dedicated event-loop thread,
so synchronous resolution calls from any thread can share it.

Expected tables:
    places(id, name, alt_names, types, located_in_id, also_located_in_ids,
           level, country_id, latitude, longitude, sources)
    place_words(word, ids)
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Coroutine, Optional

import asyncpg

from place_standardizer.config import ConfigError, DatabaseConfig
from place_standardizer.models import Place
from place_standardizer.store.base import PlaceStore, StoreError
from place_standardizer.store.records import parse_ids, place_from_row

logger = logging.getLogger(__name__)

PLACE_QUERY = """
SELECT id, name, alt_names, types, located_in_id, also_located_in_ids,
       level, country_id, latitude, longitude, sources
FROM places WHERE id = $1
"""
WORD_QUERY = "SELECT ids FROM place_words WHERE word = $1"


class RelationalPlaceStore(PlaceStore):
    name = "postgres"

    def __init__(self, db_config: DatabaseConfig, query_timeout: float = 30.0):
        self.db_config = db_config
        self.query_timeout = query_timeout
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="gazetteer-db", daemon=True
        )
        self._thread.start()
        try:
            self._pool: asyncpg.Pool = self._submit(self._create_pool())
        except Exception as e:
            self._stop_loop()
            raise ConfigError(f"Cannot connect to gazetteer database: {e}") from e

    async def _create_pool(self) -> asyncpg.Pool:
        pool = await asyncpg.create_pool(
            dsn=self.db_config.dsn,
            min_size=self.db_config.min_pool_size,
            max_size=self.db_config.max_pool_size,
        )
        logger.info("Database connection pool created (min=%d, max=%d)",
                    self.db_config.min_pool_size, self.db_config.max_pool_size)
        return pool

    def _submit(self, coro: Coroutine[Any, Any, Any]) -> Any:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        try:
            return future.result(timeout=self.query_timeout)
        except FutureTimeoutError:
            future.cancel()
            raise

    async def _fetch_place(self, place_id: int) -> Optional[asyncpg.Record]:
        async with self._pool.acquire() as conn:
            return await conn.fetchrow(PLACE_QUERY, place_id)

    async def _fetch_word(self, word: str) -> Optional[str]:
        async with self._pool.acquire() as conn:
            return await conn.fetchval(WORD_QUERY, word)

    def fetch_place(self, place_id: int) -> Optional[Place]:
        try:
            row = self._submit(self._fetch_place(place_id))
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, FutureTimeoutError) as e:
            raise StoreError(f"places query failed: {e}") from e
        return place_from_row(row) if row is not None else None

    def fetch_word(self, word: str) -> list[int]:
        try:
            ids = self._submit(self._fetch_word(word))
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, FutureTimeoutError) as e:
            raise StoreError(f"place_words query failed: {e}") from e
        return sorted(parse_ids(ids))

    def _stop_loop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)

    def close(self) -> None:
        try:
            self._submit(self._pool.close())
            logger.info("Database connection pool closed")
        finally:
            self._stop_loop()
