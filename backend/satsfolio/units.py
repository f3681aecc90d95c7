"""Unit helpers for BTC / satoshi quantities."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pricing import SpotRates

SATOSHIS_PER_BTC = 100_000_000


class CurrencyUnit(str, Enum):
    BTC = "BTC"
    SATS = "SATS"


class DisplayCurrency(str, Enum):
    USD = "USD"
    BRL = "BRL"


class DisplayUnit(str, Enum):
    """Units the comparison view can render BTC-denominated series in."""

    BTC = "btc"
    USD = "usd"
    BRL = "brl"


def to_btc(amount: float, unit: CurrencyUnit | str = CurrencyUnit.BTC) -> float:
    """Return ``amount`` expressed in BTC."""

    if CurrencyUnit(unit) == CurrencyUnit.SATS:
        return amount / SATOSHIS_PER_BTC
    return amount


def record_unit(value: object) -> CurrencyUnit:
    """Unit of a raw record: ``SATS`` in any case, otherwise BTC."""

    if isinstance(value, str) and value.strip().upper() == CurrencyUnit.SATS.value:
        return CurrencyUnit.SATS
    return CurrencyUnit.BTC


def to_sats(amount_btc: float) -> int:
    """Return ``amount_btc`` as a whole number of satoshis."""

    return round(amount_btc * SATOSHIS_PER_BTC)


def convert_from_btc(value_btc: float, unit: DisplayUnit | str, rates: "SpotRates") -> float:
    unit = DisplayUnit(unit)
    if unit == DisplayUnit.USD:
        return value_btc * rates.btc_to_usd
    if unit == DisplayUnit.BRL:
        return value_btc * rates.btc_to_usd * rates.brl_to_usd
    return value_btc


__all__ = [
    "SATOSHIS_PER_BTC",
    "CurrencyUnit",
    "DisplayCurrency",
    "DisplayUnit",
    "record_unit",
    "to_btc",
    "to_sats",
    "convert_from_btc",
]
