"""CoinGecko client and oracle tests."""

from __future__ import annotations

from datetime import date

import httpx
import pytest

from app.providers.coingecko import CoinGeckoClient, CoinGeckoError
from app.services.market_data import CoinGeckoPriceOracle, daily_closes, fetch_spot_rates

DAY_MS = 86_400_000
JAN_1_MS = 1_704_067_200_000


def _client(handler, **kwargs) -> CoinGeckoClient:
    transport = httpx.MockTransport(handler)
    return CoinGeckoClient(
        api_key=kwargs.pop("api_key", "demo-key"),
        base_url="https://coingecko.test/api/v3",
        requests_per_minute=kwargs.pop("requests_per_minute", 100),
        client=httpx.AsyncClient(transport=transport),
        **kwargs,
    )


async def test_market_chart_range_sends_window_and_key():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"prices": [[JAN_1_MS, 42_000.5], [JAN_1_MS + DAY_MS, None]]})

    client = _client(handler)
    points = await client.market_chart_range("USD", date(2024, 1, 1), date(2024, 1, 2))

    assert points == [(JAN_1_MS, 42_000.5)]
    request = seen[0]
    assert request.url.path == "/api/v3/coins/bitcoin/market_chart/range"
    assert request.url.params["vs_currency"] == "usd"
    assert request.url.params["from"] == str(JAN_1_MS // 1000)
    assert request.url.params["to"] == str((JAN_1_MS + 2 * DAY_MS) // 1000)
    assert request.headers["x-cg-demo-api-key"] == "demo-key"


async def test_http_errors_raise_provider_error():
    client = _client(lambda request: httpx.Response(429, text="slow down"))

    with pytest.raises(CoinGeckoError, match="429"):
        await client.market_chart_range("usd", date(2024, 1, 1), date(2024, 1, 2))


async def test_transport_errors_raise_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(CoinGeckoError):
        await _client(handler).simple_price()


async def test_payload_without_prices_is_rejected():
    client = _client(lambda request: httpx.Response(200, json={"error": "nope"}))

    with pytest.raises(CoinGeckoError):
        await client.market_chart_range("usd", date(2024, 1, 1), date(2024, 1, 2))


async def test_spot_rates_derive_brl_per_usd():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["ids"] == "bitcoin"
        assert request.url.params["vs_currencies"] == "usd,brl"
        return httpx.Response(200, json={"bitcoin": {"usd": 60_000, "brl": 300_000}})

    rates = await fetch_spot_rates(_client(handler))

    assert rates.btc_to_usd == 60_000.0
    assert rates.brl_to_usd == pytest.approx(5.0)


async def test_spot_rates_missing_currency():
    client = _client(lambda request: httpx.Response(200, json={"bitcoin": {"usd": 60_000}}))

    with pytest.raises(CoinGeckoError, match="brl"):
        await fetch_spot_rates(client)


def test_daily_closes_takes_last_point_and_fills_forward():
    points = [
        (JAN_1_MS, 100.0),
        (JAN_1_MS + DAY_MS // 2, 110.0),
        (JAN_1_MS + 2 * DAY_MS, 130.0),
    ]

    closes = daily_closes(points, date(2024, 1, 1), date(2024, 1, 4))

    assert closes == {
        "2024-01-01": 110.0,
        "2024-01-02": 110.0,
        "2024-01-03": 130.0,
        "2024-01-04": 130.0,
    }
    assert daily_closes([], date(2024, 1, 1), date(2024, 1, 4)) == {}


async def test_oracle_returns_daily_quotes():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["vs_currency"] == "brl"
        return httpx.Response(200, json={"prices": [[JAN_1_MS + 3_600_000, 200_000.0]]})

    oracle = CoinGeckoPriceOracle(_client(handler))

    quotes = await oracle.get_historical_quotes("BRL", date(2024, 1, 1), date(2024, 1, 2))

    assert quotes == {"2024-01-01": 200_000.0, "2024-01-02": 200_000.0}


async def test_throttle_waits_when_budget_is_spent(monkeypatch):
    sleeps: list[float] = []
    ticks = iter([0.0, 0.0, 10.0, 60.0])

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    monkeypatch.setattr("app.providers.coingecko.asyncio.sleep", fake_sleep)
    client = _client(
        lambda request: httpx.Response(200, json={"bitcoin": {"usd": 1, "brl": 5}}),
        requests_per_minute=1,
        clock=lambda: next(ticks),
    )

    await client.simple_price()
    await client.simple_price()

    assert sleeps == [pytest.approx(50.0)]
