"""api.py — FastAPI backend for the plant bloom calculator.

Endpoints:
    GET  /health           — liveness check, reports which tiers are available
    POST /bloom-timeline   — plant name + sowing month → bloom report JSON
    GET  /plants/popular   — popular plants with known data
    GET  /plants/suggest   — autocomplete for a partially typed plant name

Run::

    uvicorn api:app --reload
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from bloom.calculator import BloomCalculator
from bloom.errors import BloomCalculatorError
from care.resolver import TieredPlantResolver
from care.wiring import build_resolver
from config import get_settings

logger = logging.getLogger(__name__)


class BloomRequest(BaseModel):
    plant: str
    sowing_month: str


def _default_resolver() -> TieredPlantResolver:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    return build_resolver(settings)


def create_app(resolver_factory: Callable[[], TieredPlantResolver] = _default_resolver) -> FastAPI:
    """
    Build the FastAPI app.

    The resolver is created once in the lifespan handler and shared by every
    request through ``app.state``.
    """

    # ── Lifespan: build resolver once at startup ─────────────────────────────

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolver = resolver_factory()
        if resolver.store is not None:
            await resolver.warm_cache(get_settings().remote_warm_page_size)
        app.state.resolver = resolver
        app.state.calculator = BloomCalculator(resolver)
        logger.info(
            "Bloom calculator ready (%d local plants, remote=%s, ai=%s).",
            len(resolver.index),
            resolver.store is not None,
            resolver.suggester is not None,
        )

        yield

        app.state.calculator = None
        app.state.resolver = None

    app = FastAPI(title="Plant Bloom Calculator API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routes ───────────────────────────────────────────────────────────────

    @app.get("/health")
    def health(request: Request):
        resolver: TieredPlantResolver = request.app.state.resolver
        return {
            "status":            "ok",
            "local_plants":      len(resolver.index),
            "remote_configured": resolver.store is not None,
            "ai_configured":     resolver.suggester is not None,
        }

    @app.post("/bloom-timeline")
    async def bloom_timeline(body: BloomRequest, request: Request):
        calculator: BloomCalculator = request.app.state.calculator
        try:
            report = await calculator.calculate(body.plant, body.sowing_month)
        except BloomCalculatorError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

        if not report.found:
            raise HTTPException(status_code=404, detail=report.message)
        return report.to_dict()

    @app.get("/plants/popular")
    def popular_plants(request: Request):
        return {"plants": request.app.state.resolver.popular_plants()}

    @app.get("/plants/suggest")
    def suggest(request: Request, q: str = Query(""), limit: int = Query(5, ge=1, le=20)):
        return {"query": q, "suggestions": request.app.state.resolver.suggest_names(q, limit)}

    return app


app = create_app()
