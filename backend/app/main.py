"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.dependencies import get_coingecko_client
from app.api.routes import api_router
from app.config import get_settings
from app.core.logging import setup_logging
from app.core.telemetry import setup_telemetry

logger = logging.getLogger(__name__)

settings = get_settings()
app = FastAPI(title=settings.app_name, version="0.1.0")
setup_logging()
setup_telemetry(app, settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["traceparent", "tracestate", "baggage"],
)


@app.on_event("startup")
async def startup() -> None:
    logger.info("Starting %s with %s", settings.app_name, settings.dict_for_logging())


@app.on_event("shutdown")
async def shutdown() -> None:
    """Release the shared CoinGecko connection pool."""

    await get_coingecko_client().aclose()


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Return service readiness metadata."""

    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "display_currency": settings.default_display_currency,
        "quote_gap_policy": settings.quote_gap_policy,
    }


def configure_app() -> FastAPI:
    """Attach routes and dependencies."""

    app.include_router(api_router)
    return app


configure_app()

__all__ = ["app", "configure_app"]
