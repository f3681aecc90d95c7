"""Market data and report service dependencies."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from app.config import get_settings
from app.providers.coingecko import CoinGeckoClient
from app.services.market_data import CoinGeckoPriceOracle
from app.services.reports import ReportService
from satsfolio.pricing import CachingPriceOracle, PriceOracle


@lru_cache(maxsize=1)
def get_coingecko_client() -> CoinGeckoClient:
    """Shared throttled client so the rate limit spans every request."""

    return CoinGeckoClient()


@lru_cache(maxsize=1)
def _cached_oracle() -> CachingPriceOracle:
    settings = get_settings()
    return CachingPriceOracle(
        CoinGeckoPriceOracle(get_coingecko_client()),
        ttl_seconds=settings.price_cache_ttl_minutes * 60,
        max_entries=settings.price_cache_max_entries,
    )


def get_price_oracle() -> PriceOracle:
    return _cached_oracle()


def get_report_service(oracle: PriceOracle = Depends(get_price_oracle)) -> ReportService:
    return ReportService(oracle, get_settings())


__all__ = ["get_coingecko_client", "get_price_oracle", "get_report_service"]
