"""Price oracle and quote book tests."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from satsfolio.errors import QuoteGapError
from satsfolio.pricing import CachingPriceOracle, InMemoryPriceOracle, QuoteBook, QuoteGapPolicy
from satsfolio.units import DisplayCurrency


class CountingOracle:
    def __init__(self) -> None:
        self.calls = 0

    async def get_historical_quotes(self, currency, start_date, end_date):
        self.calls += 1
        return {"2024-01-01": 100.0 + self.calls}


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


async def test_in_memory_oracle_filters_window():
    oracle = InMemoryPriceOracle({"USD": {date(2024, 1, 1): 1.0, "2024-01-02": "2.5", "2024-01-05": 5.0}})

    quotes = await oracle.get_historical_quotes(DisplayCurrency.USD, date(2024, 1, 1), date(2024, 1, 3))

    assert quotes == {"2024-01-01": 1.0, "2024-01-02": 2.5}
    assert await oracle.get_historical_quotes("BRL", date(2024, 1, 1), date(2024, 1, 3)) == {}


async def test_flat_oracle_quotes_every_day():
    oracle = InMemoryPriceOracle.flat({"USD": 10.0}, date(2024, 2, 27), date(2024, 3, 1))

    quotes = await oracle.get_historical_quotes("USD", date(2024, 1, 1), date(2024, 12, 31))

    assert list(quotes) == ["2024-02-27", "2024-02-28", "2024-02-29", "2024-03-01"]


async def test_caching_oracle_reuses_ranges_until_ttl_expires():
    delegate = CountingOracle()
    clock = FakeClock()
    oracle = CachingPriceOracle(delegate, ttl_seconds=60, clock=clock)

    first = await oracle.get_historical_quotes("USD", date(2024, 1, 1), date(2024, 1, 31))
    first["2024-01-01"] = -1.0
    second = await oracle.get_historical_quotes("USD", date(2024, 1, 1), date(2024, 1, 31))
    assert delegate.calls == 1
    assert second == {"2024-01-01": 101.0}

    await oracle.get_historical_quotes("USD", date(2024, 1, 1), date(2024, 2, 1))
    assert delegate.calls == 2

    clock.now = 61.0
    refreshed = await oracle.get_historical_quotes("USD", date(2024, 1, 1), date(2024, 1, 31))
    assert delegate.calls == 3
    assert refreshed == {"2024-01-01": 103.0}


async def test_caching_oracle_clear_forces_refetch():
    delegate = CountingOracle()
    oracle = CachingPriceOracle(delegate)

    await oracle.get_historical_quotes("USD", date(2024, 1, 1), date(2024, 1, 31))
    oracle.clear()
    await oracle.get_historical_quotes("USD", date(2024, 1, 1), date(2024, 1, 31))

    assert delegate.calls == 2


async def test_caching_oracle_drops_expired_ranges():
    delegate = CountingOracle()
    clock = FakeClock()
    oracle = CachingPriceOracle(delegate, ttl_seconds=0.0, clock=clock)

    for offset in range(50):
        await oracle.get_historical_quotes("USD", date(2024, 1, 1), date(2024, 2, 1 + offset % 28))
        clock.now += 1.0

    assert len(oracle) <= 1
    assert delegate.calls == 50


async def test_caching_oracle_evicts_least_recently_used_range():
    delegate = CountingOracle()
    oracle = CachingPriceOracle(delegate, max_entries=2)
    january = (date(2024, 1, 1), date(2024, 1, 31))
    february = (date(2024, 2, 1), date(2024, 2, 29))
    march = (date(2024, 3, 1), date(2024, 3, 31))

    await oracle.get_historical_quotes("USD", *january)
    await oracle.get_historical_quotes("USD", *february)
    await oracle.get_historical_quotes("USD", *january)
    await oracle.get_historical_quotes("USD", *march)
    assert len(oracle) == 2
    assert delegate.calls == 3

    await oracle.get_historical_quotes("USD", *january)
    assert delegate.calls == 3
    await oracle.get_historical_quotes("USD", *february)
    assert delegate.calls == 4


async def test_caching_oracle_stays_bounded_under_distinct_ranges():
    oracle = CachingPriceOracle(CountingOracle(), ttl_seconds=3600, max_entries=16)

    for offset in range(200):
        await oracle.get_historical_quotes("BRL", date(2020, 1, 1), date(2020, 1, 1) + timedelta(days=offset))

    assert len(oracle) == 16


def test_caching_oracle_rejects_empty_capacity():
    with pytest.raises(ValueError):
        CachingPriceOracle(CountingOracle(), max_entries=0)


def test_quote_book_exact_hit_records_nothing():
    book = QuoteBook(DisplayCurrency.USD, {"2024-01-01": 100.0})

    assert book.price_on(date(2024, 1, 1), QuoteGapPolicy.FAIL) == 100.0
    assert date(2024, 1, 1) in book
    assert book.gaps == set()


def test_quote_book_gap_policies():
    book = QuoteBook(DisplayCurrency.USD, {"2024-01-01": 100.0, "2024-01-03": 300.0})

    assert book.price_on("2024-01-02", QuoteGapPolicy.ZERO) == 0.0
    assert book.price_on("2024-01-04", QuoteGapPolicy.NEAREST) == 300.0
    assert book.price_on("2023-12-31", QuoteGapPolicy.NEAREST) == 0.0
    with pytest.raises(QuoteGapError) as excinfo:
        book.price_on("2024-01-05", QuoteGapPolicy.FAIL)

    assert excinfo.value.day == "2024-01-05"
    assert book.gaps == {"2024-01-02", "2024-01-04", "2023-12-31"}


def test_valuation_lookup_falls_back_silently_to_earlier_quote():
    book = QuoteBook(DisplayCurrency.BRL, {"2024-01-10": 250_000.0})

    assert book.price_at_or_before(date(2024, 1, 31)) == 250_000.0
    assert book.gaps == set()

    assert book.price_at_or_before(date(2024, 1, 1)) == 0.0
    assert book.gaps == {"2024-01-01"}

    with pytest.raises(QuoteGapError):
        book.price_at_or_before(date(2024, 1, 1), strict=True)
