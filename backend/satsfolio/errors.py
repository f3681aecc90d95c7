"""Exception taxonomy for the portfolio calculation core."""

from __future__ import annotations


class SatsfolioError(Exception):
    """Base class for calculation-core errors."""


class DataError(SatsfolioError, ValueError):
    """Raised when a single record carries a malformed date or amount.

    The normalizer catches it and skips the record, so it never reaches
    callers of the public calculation functions.
    """

    def __init__(self, record_id: str | None, message: str):
        super().__init__(f"{record_id or '<unknown>'}: {message}")
        self.record_id = record_id


class QuoteGapError(SatsfolioError, LookupError):
    """Raised when no quote exists for a date and the gap policy is ``fail``."""

    def __init__(self, currency: str, day: str):
        super().__init__(f"Missing {currency} quote for {day}")
        self.currency = currency
        self.day = day


__all__ = ["SatsfolioError", "DataError", "QuoteGapError"]
