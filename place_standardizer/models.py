"""
Pydantic models shared by the store, the engine and the API.
These are pure data objects — no storage coupling.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# Ordered word groups produced by the tokenizer, most specific group first
LevelWords = list[list[str]]


# ── Enums ──────────────────────────────────────────────────────────────

class Mode(str, Enum):
    """
    BEST: return the closest matching place.
    REQUIRED: the match must include the most specific level, or nothing.
    NEW: like BEST, but when the most specific level is not matched return a
         placeholder place named after it, located in the best match.
    """
    BEST = "best"
    REQUIRED = "required"
    NEW = "new"


# ── Gazetteer records ─────────────────────────────────────────────────

class AltName(BaseModel):
    name: str
    source: Optional[str] = None

    model_config = {"frozen": True}


class Source(BaseModel):
    source: str
    id: Optional[str] = None

    model_config = {"frozen": True}


class Place(BaseModel):
    """A gazetteer entry. Parents are referenced by id, never by object."""
    id: int = 0
    name: str
    alt_names: list[AltName] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    level: int = 0
    country_id: int = 0
    located_in_id: int = 0
    also_located_in_ids: list[int] = Field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    sources: list[Source] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def parent_ids(self) -> list[int]:
        """Primary parent first, then secondary parents."""
        ids = [self.located_in_id] if self.located_in_id > 0 else []
        ids.extend(pid for pid in self.also_located_in_ids if pid > 0)
        return ids


class PlaceScore(BaseModel):
    place: Place
    score: float


# ── API response models ───────────────────────────────────────────────

class PlaceResponse(BaseModel):
    id: int
    name: str
    full_name: str
    level: int
    country_id: int
    located_in_id: int
    types: list[str] = Field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class StandardizeResult(BaseModel):
    place: PlaceResponse
    score: float


class StandardizeResponse(BaseModel):
    query: str
    mode: Mode
    default_country: Optional[str] = None
    results: list[StandardizeResult] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
    backend: str
