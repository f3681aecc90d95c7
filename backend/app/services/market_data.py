"""Market data helpers for loading BTC quote series."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

import pandas as pd

from app.providers.coingecko import CoinGeckoClient, CoinGeckoError
from satsfolio.dates import DATE_KEY_FORMAT
from satsfolio.pricing import SpotRates
from satsfolio.units import DisplayCurrency

logger = logging.getLogger(__name__)


def daily_closes(points: Iterable[tuple[int, float]], start: date, end: date) -> dict[str, float]:
    """Collapse timestamped prices into one close per calendar day (UTC).

    Days inside ``start``..``end`` without a point carry the previous close
    forward; days before the first point are left out.
    """

    frame = pd.DataFrame(list(points), columns=["timestamp", "price"])
    if frame.empty:
        return {}
    frame["day"] = pd.to_datetime(frame["timestamp"], unit="ms", utc=True).dt.tz_localize(None).dt.normalize()
    closes = frame.sort_values("timestamp").groupby("day")["price"].last()
    window = pd.date_range(pd.Timestamp(start), pd.Timestamp(end), freq="D")
    closes = closes.reindex(window).ffill().dropna()
    return {day.strftime(DATE_KEY_FORMAT): float(price) for day, price in closes.items()}


class CoinGeckoPriceOracle:
    """Price oracle backed by CoinGecko's market chart range endpoint."""

    def __init__(self, client: CoinGeckoClient):
        self.client = client

    async def get_historical_quotes(
        self,
        currency: DisplayCurrency,
        start_date: date,
        end_date: date,
    ) -> dict[str, float]:
        currency = DisplayCurrency(currency)
        points = await self.client.market_chart_range(currency.value, start_date, end_date)
        quotes = daily_closes(points, start_date, end_date)
        logger.debug(
            "CoinGecko returned %d points, %d daily %s closes for %s..%s",
            len(points),
            len(quotes),
            currency.value,
            start_date,
            end_date,
        )
        return quotes


async def fetch_spot_rates(client: CoinGeckoClient) -> SpotRates:
    """Current BTC price in USD and the BRL-per-USD rate implied by CoinGecko."""

    quotes = await client.simple_price(("usd", "brl"))
    btc_usd = quotes["usd"]
    if btc_usd <= 0:
        raise CoinGeckoError("CoinGecko returned a non-positive BTC/USD price")
    return SpotRates(btc_to_usd=btc_usd, brl_to_usd=quotes["brl"] / btc_usd)


__all__ = ["CoinGeckoPriceOracle", "daily_closes", "fetch_spot_rates"]
