"""Backend selection. Decided once at startup, never inside the lookup path."""

from __future__ import annotations

import logging
from pathlib import Path

from place_standardizer.config import ConfigError, Settings, StandardizerRules
from place_standardizer.store.base import PlaceStore
from place_standardizer.store.cached import CachedPlaceStore
from place_standardizer.store.local import LocalPlaceStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings, rules: StandardizerRules) -> PlaceStore:
    """Factory: return the configured place store."""
    cfg = settings.store
    if cfg.backend == "local":
        store: PlaceStore = LocalPlaceStore.open_or_build(
            Path(cfg.local_db_path), Path(cfg.dataset_dir), rules, mmap_size=cfg.mmap_size
        )
    elif cfg.backend in ("postgres", "cached"):
        from place_standardizer.store.relational import RelationalPlaceStore

        store = RelationalPlaceStore(settings.db)
        if cfg.backend == "cached":
            store = CachedPlaceStore(
                store,
                place_cache_size=cfg.place_cache_size,
                place_cache_ttl=cfg.place_cache_ttl,
                word_cache_size=cfg.word_cache_size,
                word_cache_ttl=cfg.word_cache_ttl,
            )
    else:
        raise ConfigError(f"Unknown gazetteer backend '{cfg.backend}'")

    logger.info("Using %s place store", store.name)
    return store
