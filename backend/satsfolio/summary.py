"""Simplified report summary valued at live spot rates, used by document renderers."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from .models import Report, ReportSummary
from .normalizer import parse_report
from .pricing import SpotRates
from .temporal import stats_from_parsed
from .units import DisplayCurrency

DEFAULT_REPORT_NAME = "Bitcoin Report"
DEFAULT_PERIOD = "Full period"


def summarize_report(
    report: Report,
    rates: SpotRates,
    display_currency: DisplayCurrency | str = DisplayCurrency.USD,
    *,
    period_description: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> ReportSummary:
    """BTC totals of ``report`` with their current value in ``display_currency``.

    Unlike the cost-basis metrics this needs no historical quotes: every BTC
    figure is converted with the same spot price.
    """

    display_currency = DisplayCurrency(display_currency)
    stats = stats_from_parsed(parse_report(report))
    price = rates.btc_price(display_currency)
    return ReportSummary(
        report_name=report.name or DEFAULT_REPORT_NAME,
        report_period=period_description or DEFAULT_PERIOD,
        display_currency=display_currency,
        total_investments_btc=stats.total_investments,
        total_profits_btc=stats.total_profits,
        total_balance_btc=stats.final_balance,
        total_investments_display=stats.total_investments * price,
        total_profits_display=stats.total_profits * price,
        total_balance_display=stats.final_balance * price,
        stats=stats,
        current_btc_price_usd=rates.btc_to_usd,
        current_btc_price_brl=rates.btc_price(DisplayCurrency.BRL),
        generated_at=generated_at or datetime.now(timezone.utc),
    )


__all__ = ["summarize_report"]
