"""Pydantic schemas for BTC quote endpoints."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from satsfolio.units import DisplayCurrency


class HistoricalQuotesResponse(BaseModel):
    currency: DisplayCurrency
    from_date: date
    to_date: date
    quotes: dict[str, float] = Field(default_factory=dict, description="Daily close keyed by YYYY-MM-DD")


class SpotPriceResponse(BaseModel):
    btc_to_usd: float
    brl_to_usd: float
    btc_to_brl: float

    class Config:
        json_schema_extra = {
            "example": {"btc_to_usd": 65000.0, "brl_to_usd": 5.0, "btc_to_brl": 325000.0}
        }


__all__ = ["HistoricalQuotesResponse", "SpotPriceResponse"]
