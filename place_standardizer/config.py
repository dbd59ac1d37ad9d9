"""
Central configuration loaded from environment variables with sensible defaults,
plus the standardizer rules document (type words, abbreviations, weights).
Settings are read once at startup and never mutated afterwards.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ValidationError, model_validator

DATA_DIR = Path(__file__).parent / "data"


class ConfigError(RuntimeError):
    """Unrecoverable configuration or dataset problem detected at startup."""


@dataclass(frozen=True)
class DatabaseConfig:
    host: str = os.getenv("PG_HOST", "localhost")
    port: int = int(os.getenv("PG_PORT", "5432"))
    user: str = os.getenv("PG_USER", "places")
    password: str = os.getenv("PG_PASSWORD", "places")
    database: str = os.getenv("PG_DATABASE", "places")
    min_pool_size: int = int(os.getenv("PG_POOL_MIN", "2"))
    max_pool_size: int = int(os.getenv("PG_POOL_MAX", "10"))
    # A full URL wins over the individual PG_* settings
    url: str = os.getenv("DATABASE_URL", "")

    @property
    def dsn(self) -> str:
        if self.url:
            return self.url
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass(frozen=True)
class StoreConfig:
    backend: str = os.getenv("GAZETTEER_BACKEND", "local")  # local | postgres | cached
    dataset_dir: str = os.getenv("GAZETTEER_DATASET", str(DATA_DIR / "sample"))
    local_db_path: str = os.getenv("GAZETTEER_DB", str(DATA_DIR / "places.sqlite"))
    mmap_size: int = int(os.getenv("GAZETTEER_MMAP_SIZE", str(256 * 1024 * 1024)))
    # Cache-aside layer in front of the relational backend
    place_cache_size: int = int(os.getenv("PLACE_CACHE_MAX_SIZE", "50000"))
    place_cache_ttl: float = float(os.getenv("PLACE_CACHE_MAX_SECONDS", "3600"))
    word_cache_size: int = int(os.getenv("WORD_CACHE_MAX_SIZE", "50000"))
    word_cache_ttl: float = float(os.getenv("WORD_CACHE_MAX_SECONDS", "3600"))


@dataclass(frozen=True)
class APIConfig:
    host: str = os.getenv("API_HOST", "0.0.0.0")
    port: int = int(os.getenv("API_PORT", "8000"))
    max_results: int = int(os.getenv("API_MAX_RESULTS", "25"))


@dataclass(frozen=True)
class Settings:
    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    api: APIConfig = field(default_factory=APIConfig)
    rules_path: str = os.getenv("STANDARDIZER_RULES", str(DATA_DIR / "standardizer.json"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    env: str = os.getenv("APP_ENV", "development")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()


# ── Standardizer rules ────────────────────────────────────────────────

class StandardizerRules(BaseModel):
    """Word lists and weights that drive token construction and scoring."""

    type_words: frozenset[str] = frozenset()
    abbreviations: dict[str, str] = {}
    noise_words: frozenset[str] = frozenset()
    large_countries: frozenset[int] = frozenset()
    medium_countries: frozenset[int] = frozenset()
    large_country_level_weights: tuple[float, ...]
    medium_country_level_weights: tuple[float, ...]
    small_country_level_weights: tuple[float, ...]
    primary_match_weight: float = 0.0
    # Country whose states may not be skipped over (USA in the bundled dataset)
    special_country_id: int = 1500
    max_levels: int = 4

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_weights(self) -> "StandardizerRules":
        for name in (
            "large_country_level_weights",
            "medium_country_level_weights",
            "small_country_level_weights",
        ):
            if len(getattr(self, name)) < self.max_levels:
                raise ValueError(f"{name} needs at least {self.max_levels} entries")
        return self

    def expand(self, word: str) -> str:
        return self.abbreviations.get(word, word)

    def is_type_word(self, word: str) -> bool:
        return self.expand(word) in self.type_words

    def is_noise_word(self, word: str) -> bool:
        return word in self.noise_words

    def level_weights(self, country_id: int) -> tuple[float, ...]:
        if country_id in self.large_countries:
            return self.large_country_level_weights
        if country_id in self.medium_countries:
            return self.medium_country_level_weights
        return self.small_country_level_weights


def load_rules(path: str | Path | None = None) -> StandardizerRules:
    """
    Read the rules document. Any failure here is fatal: nothing can be
    standardized without type words, abbreviations and weights.
    """
    rules_path = Path(path or get_settings().rules_path)
    try:
        raw = json.loads(rules_path.read_text(encoding="utf-8"))
        return StandardizerRules.model_validate(raw)
    except FileNotFoundError as e:
        raise ConfigError(f"Missing standardizer rules: {rules_path}") from e
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigError(f"Corrupt standardizer rules {rules_path}: {e}") from e
