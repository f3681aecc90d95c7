"""CoinGecko client used by the backend service."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from datetime import date, datetime, time as dt_time, timedelta, timezone
from typing import Any, Callable, Deque, Optional

import httpx

from app.config import get_settings

logger = logging.getLogger(__name__)

COIN_ID = "bitcoin"
_WINDOW_SECONDS = 60.0


class CoinGeckoError(RuntimeError):
    """Raised when CoinGecko fails or returns an unusable payload."""


class CoinGeckoClient:
    """Throttled CoinGecko client with the two calls the service needs."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        requests_per_minute: int | None = None,
        timeout: float | None = None,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.coingecko_api_key
        self.base_url = (base_url or settings.coingecko_base_url).rstrip("/")
        self.requests_per_minute = requests_per_minute or settings.coingecko_requests_per_minute
        self.timeout = timeout or settings.coingecko_timeout_seconds
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None
        self._clock = clock
        self._calls: Deque[float] = deque()
        self._lock = asyncio.Lock()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _throttle(self) -> None:
        async with self._lock:
            now = self._clock()
            while self._calls and now - self._calls[0] >= _WINDOW_SECONDS:
                self._calls.popleft()
            if len(self._calls) >= self.requests_per_minute:
                wait = _WINDOW_SECONDS - (now - self._calls[0])
                logger.info("CoinGecko rate limit reached, sleeping %.1fs", wait)
                await asyncio.sleep(wait)
                self._calls.popleft()
            self._calls.append(self._clock())

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        await self._throttle()
        headers = {"accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = await self._client.get(url, params=params, headers=headers, timeout=self.timeout)
        except httpx.HTTPError as exc:
            raise CoinGeckoError(f"CoinGecko request failed: {exc}") from exc
        if response.status_code >= 400:
            raise CoinGeckoError(f"CoinGecko error {response.status_code}: {response.text[:200]}")
        try:
            return response.json()
        except ValueError as exc:
            raise CoinGeckoError("CoinGecko returned invalid JSON") from exc

    async def market_chart_range(self, vs_currency: str, start: date, end: date) -> list[tuple[int, float]]:
        """Return ``(timestamp_ms, price)`` pairs covering ``start`` to ``end`` inclusive."""

        start_ts = int(datetime.combine(start, dt_time.min, tzinfo=timezone.utc).timestamp())
        end_ts = int(datetime.combine(end + timedelta(days=1), dt_time.min, tzinfo=timezone.utc).timestamp())
        payload = await self._get(
            f"coins/{COIN_ID}/market_chart/range",
            {"vs_currency": vs_currency.lower(), "from": start_ts, "to": end_ts},
        )
        prices = payload.get("prices") if isinstance(payload, dict) else None
        if not isinstance(prices, list):
            raise CoinGeckoError("CoinGecko market chart payload has no prices")
        points: list[tuple[int, float]] = []
        for entry in prices:
            if isinstance(entry, (list, tuple)) and len(entry) >= 2 and entry[1] is not None:
                points.append((int(entry[0]), float(entry[1])))
        return points

    async def simple_price(self, vs_currencies: tuple[str, ...] = ("usd", "brl")) -> dict[str, float]:
        payload = await self._get(
            "simple/price",
            {"ids": COIN_ID, "vs_currencies": ",".join(vs_currencies)},
        )
        quotes = payload.get(COIN_ID) if isinstance(payload, dict) else None
        if not isinstance(quotes, dict):
            raise CoinGeckoError("CoinGecko simple price payload has no bitcoin entry")
        missing = [currency for currency in vs_currencies if currency not in quotes]
        if missing:
            raise CoinGeckoError(f"CoinGecko simple price missing {', '.join(missing)}")
        return {currency: float(quotes[currency]) for currency in vs_currencies}


__all__ = ["CoinGeckoClient", "CoinGeckoError", "COIN_ID"]
