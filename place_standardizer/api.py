"""
FastAPI service exposing the place standardizer.

Endpoints:
  GET /standardize  - Resolve free-text place text to gazetteer places
  GET /place/{id}   - Single place with its full name
  GET /health       - Liveness and the active store backend
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request

from place_standardizer.config import get_settings
from place_standardizer.diagnostics import LoggingErrorHandler
from place_standardizer.engine import Standardizer
from place_standardizer.models import (
    HealthResponse,
    Mode,
    Place,
    PlaceResponse,
    StandardizeResponse,
    StandardizeResult,
)

logger = logging.getLogger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build the engine once (tests may inject one). Shutdown: close the store."""
    owned = getattr(app.state, "standardizer", None) is None
    if owned:
        logger.info("Starting up API server...")
        app.state.standardizer = Standardizer.from_settings(error_handler=LoggingErrorHandler())
    yield
    if owned:
        app.state.standardizer.close()
        app.state.standardizer = None
        logger.info("API server shut down.")


# ── App ───────────────────────────────────────────────────────────────

app = FastAPI(
    title="Place Standardizer API",
    description="Resolve free-text place names against a hierarchical gazetteer",
    version="1.0.0",
    lifespan=lifespan,
)


# ── Helpers ───────────────────────────────────────────────────────────

def _engine(request: Request) -> Standardizer:
    return request.app.state.standardizer


def _format_place(engine: Standardizer, place: Place) -> PlaceResponse:
    return PlaceResponse(
        id=place.id,
        name=place.name,
        full_name=engine.full_name(place),
        level=place.level,
        country_id=place.country_id,
        located_in_id=place.located_in_id,
        types=place.types,
        latitude=place.latitude,
        longitude=place.longitude,
    )


# ══════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ══════════════════════════════════════════════════════════════════════

# Resolution blocks on the store, so endpoints are plain defs (threadpool)

@app.get("/standardize", response_model=StandardizeResponse)
def standardize(
    request: Request,
    q: str = Query(..., min_length=1, description="Place text, most specific part first"),
    default_country: Optional[str] = Query(None, description="Country used to narrow ambiguous matches"),
    mode: Mode = Query(Mode.BEST),
    num_results: int = Query(1, ge=1, description="Maximum number of results"),
):
    settings = get_settings()
    if num_results > settings.api.max_results:
        raise HTTPException(400, f"num_results must be <= {settings.api.max_results}")

    engine = _engine(request)
    results = engine.resolve(q, default_country=default_country, mode=mode, num_results=num_results)
    return StandardizeResponse(
        query=q,
        mode=mode,
        default_country=default_country,
        results=[
            StandardizeResult(place=_format_place(engine, r.place), score=r.score)
            for r in results
        ],
    )


@app.get("/place/{place_id}", response_model=PlaceResponse)
def get_place(request: Request, place_id: int):
    engine = _engine(request)
    place = engine.get_place(place_id)
    if place is None:
        raise HTTPException(404, "Place not found")
    return _format_place(engine, place)


@app.get("/health", response_model=HealthResponse)
def health_check(request: Request):
    return HealthResponse(status="ok", backend=_engine(request).store.name)
