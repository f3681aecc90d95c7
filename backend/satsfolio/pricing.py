"""Historical BTC quotes: the oracle protocol and per-calculation lookups.

The calculation core never fetches prices itself. Callers inject a
``PriceOracle``; the core awaits it once per currency before any ledger replay
and then resolves individual dates through a ``QuoteBook``, whose gap policy
decides what happens when a date has no quote.
"""

from __future__ import annotations

import bisect
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Mapping, Protocol

from .dates import date_key
from .errors import QuoteGapError
from .units import DisplayCurrency

logger = logging.getLogger(__name__)


class QuoteGapPolicy(str, Enum):
    FAIL = "fail"
    NEAREST = "nearest"
    ZERO = "zero"


@dataclass(frozen=True)
class PricePoint:
    date: str
    price: float
    currency: DisplayCurrency


@dataclass(frozen=True)
class SpotRates:
    """Live rates; the BTC price in BRL is ``btc_to_usd * brl_to_usd``."""

    btc_to_usd: float
    brl_to_usd: float

    def btc_price(self, currency: DisplayCurrency | str) -> float:
        if DisplayCurrency(currency) == DisplayCurrency.BRL:
            return self.btc_to_usd * self.brl_to_usd
        return self.btc_to_usd


class PriceOracle(Protocol):
    """Pluggable provider of historical daily BTC quotes."""

    async def get_historical_quotes(
        self,
        currency: DisplayCurrency,
        start_date: date,
        end_date: date,
    ) -> dict[str, float]:
        ...


class InMemoryPriceOracle:
    """Simple oracle for tests and examples."""

    def __init__(self, quotes: Mapping[DisplayCurrency | str, Mapping[str | date, float | str]]):
        self._quotes: dict[DisplayCurrency, dict[str, float]] = {}
        for currency, series in quotes.items():
            normalized: dict[str, float] = {}
            for day, price in series.items():
                key = date_key(day) if isinstance(day, date) else str(day)
                normalized[key] = float(price)
            self._quotes[DisplayCurrency(currency)] = normalized

    async def get_historical_quotes(
        self,
        currency: DisplayCurrency,
        start_date: date,
        end_date: date,
    ) -> dict[str, float]:
        series = self._quotes.get(DisplayCurrency(currency), {})
        start_key, end_key = date_key(start_date), date_key(end_date)
        return {day: price for day, price in sorted(series.items()) if start_key <= day <= end_key}

    @classmethod
    def flat(
        cls,
        prices: Mapping[DisplayCurrency | str, float],
        start_date: date,
        end_date: date,
    ) -> "InMemoryPriceOracle":
        """Build an oracle quoting a constant price for every day in a window."""

        days = [start_date + timedelta(days=i) for i in range((end_date - start_date).days + 1)]
        return cls({currency: {day: price for day in days} for currency, price in prices.items()})


class CachingPriceOracle:
    """Cache wrapper to avoid refetching the same quote ranges.

    Entries older than ``ttl_seconds`` are purged on every access and the
    least recently used range is evicted once ``max_entries`` is reached.
    """

    def __init__(
        self,
        delegate: PriceOracle,
        *,
        ttl_seconds: float | None = None,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.delegate = delegate
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._range_cache: OrderedDict[tuple, tuple[float, dict[str, float]]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._range_cache)

    def _purge_expired(self, now: float) -> None:
        if self.ttl_seconds is None:
            return
        expired = [key for key, (stored_at, _) in self._range_cache.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._range_cache[key]

    async def get_historical_quotes(
        self,
        currency: DisplayCurrency,
        start_date: date,
        end_date: date,
    ) -> dict[str, float]:
        key = (DisplayCurrency(currency), start_date, end_date)
        now = self._clock()
        self._purge_expired(now)
        cached = self._range_cache.get(key)
        if cached is not None:
            self._range_cache.move_to_end(key)
            return dict(cached[1])
        quotes = await self.delegate.get_historical_quotes(currency, start_date, end_date)
        self._range_cache[key] = (now, dict(quotes))
        while len(self._range_cache) > self.max_entries:
            evicted, _ = self._range_cache.popitem(last=False)
            logger.debug("Evicted cached quote range %s", evicted)
        return dict(quotes)

    def clear(self) -> None:
        self._range_cache.clear()


class QuoteBook:
    """Resolves per-date prices for one currency under a gap policy.

    A book is created per calculation; the dates it could not resolve exactly
    are collected in ``gaps`` so results can flag degraded valuations.
    """

    def __init__(self, currency: DisplayCurrency, quotes: Mapping[str, float] | None = None):
        self.currency = DisplayCurrency(currency)
        self._quotes = dict(quotes or {})
        self._sorted_keys = sorted(self._quotes)
        self.gaps: set[str] = set()

    def __len__(self) -> int:
        return len(self._quotes)

    def __contains__(self, day: object) -> bool:
        key = date_key(day) if isinstance(day, date) else day
        return key in self._quotes

    def nearest_earlier(self, key: str) -> str | None:
        index = bisect.bisect_left(self._sorted_keys, key)
        if index == 0:
            return None
        return self._sorted_keys[index - 1]

    def price_on(self, day: date | str, policy: QuoteGapPolicy = QuoteGapPolicy.ZERO) -> float:
        """Quote for ``day``; a missing date is resolved by ``policy``."""

        key = date_key(day) if isinstance(day, date) else day
        price = self._quotes.get(key)
        if price is not None:
            return price
        policy = QuoteGapPolicy(policy)
        if policy == QuoteGapPolicy.FAIL:
            raise QuoteGapError(self.currency.value, key)
        if policy == QuoteGapPolicy.NEAREST:
            self.gaps.add(key)
            return self.price_at_or_before(key)
        self.gaps.add(key)
        logger.warning("No %s quote for %s, pricing at 0", self.currency.value, key)
        return 0.0

    def price_at_or_before(self, day: date | str, *, strict: bool = False) -> float:
        """Quote for ``day`` or the closest earlier date.

        Used for month-boundary valuations, which fall on days the oracle may
        not have published yet. Without any earlier quote the price is 0 and
        the date is recorded as a gap, or ``QuoteGapError`` is raised when
        ``strict``.
        """

        key = date_key(day) if isinstance(day, date) else day
        price = self._quotes.get(key)
        if price is not None:
            return price
        earlier = self.nearest_earlier(key)
        if earlier is not None:
            return self._quotes[earlier]
        if strict:
            raise QuoteGapError(self.currency.value, key)
        self.gaps.add(key)
        logger.warning("No %s quote on or before %s, pricing at 0", self.currency.value, key)
        return 0.0


__all__ = [
    "QuoteGapPolicy",
    "PricePoint",
    "SpotRates",
    "PriceOracle",
    "InMemoryPriceOracle",
    "CachingPriceOracle",
    "QuoteBook",
]
