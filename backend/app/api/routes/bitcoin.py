"""BTC quote endpoints backed by the configured price oracle."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_coingecko_client, get_price_oracle
from app.providers.coingecko import CoinGeckoClient, CoinGeckoError
from app.schemas.bitcoin import HistoricalQuotesResponse, SpotPriceResponse
from app.services.market_data import fetch_spot_rates
from satsfolio.pricing import PriceOracle
from satsfolio.units import DisplayCurrency

router = APIRouter()


@router.get("/historical", response_model=HistoricalQuotesResponse)
async def get_historical(
    from_date: date,
    to_date: date,
    currency: DisplayCurrency = Query(default=DisplayCurrency.USD),
    oracle: PriceOracle = Depends(get_price_oracle),
) -> HistoricalQuotesResponse:
    if from_date > to_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="from_date must not be after to_date")
    try:
        quotes = await oracle.get_historical_quotes(currency, from_date, to_date)
    except CoinGeckoError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return HistoricalQuotesResponse(currency=currency, from_date=from_date, to_date=to_date, quotes=quotes)


@router.get("/price", response_model=SpotPriceResponse)
async def get_price(client: CoinGeckoClient = Depends(get_coingecko_client)) -> SpotPriceResponse:
    try:
        rates = await fetch_spot_rates(client)
    except CoinGeckoError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return SpotPriceResponse(
        btc_to_usd=rates.btc_to_usd,
        brl_to_usd=rates.brl_to_usd,
        btc_to_brl=rates.btc_price(DisplayCurrency.BRL),
    )


__all__ = ["router"]
