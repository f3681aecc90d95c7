"""Elapsed-time metrics: days invested, annualized ROI and daily averages."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from .models import Report, ReportStatDetails
from .normalizer import ParsedRecord, ParsedReport, parse_report

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365
DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class TemporalMetrics:
    roi: float
    days_invested: int
    duration_label: str
    annualized_roi: float
    daily_avg_profit_btc: float
    daily_avg_roi_percent: float


def simple_roi(total_profits: float, total_investments: float) -> float:
    if total_investments <= 0:
        return 0.0
    return total_profits / total_investments * 100


def annualized_roi(total_profits: float, total_investments: float, days_invested: int) -> float:
    """Compound the simple return to a 365-day rate, as a percentage.

    Returns 0 when nothing was invested or no time elapsed, and -100 for a
    total loss. A loss larger than the investment (``1 + r < 0``) has no real
    compounded rate and also yields 0.
    """

    if days_invested <= 0 or total_investments <= 0:
        return 0.0
    ratio = total_profits / total_investments
    if math.isclose(ratio, -1.0, rel_tol=0.0, abs_tol=1e-12):
        return -100.0
    if 1 + ratio <= 0:
        logger.debug("Loss ratio %.6f exceeds the invested amount; annualized ROI set to 0", ratio)
        return 0.0
    try:
        return (math.pow(1 + ratio, DAYS_PER_YEAR / days_invested) - 1) * 100
    except OverflowError:
        logger.warning(
            "Annualized ROI overflowed for ratio %.6f over %d days; reporting 0",
            ratio,
            days_invested,
        )
        return 0.0


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def format_duration(days: object) -> str:
    """Render a day count as ``"X years Y months Z days"``.

    Months are 30 days and years 365 days. Negative or non-numeric input
    gives ``"N/A"``; zero gives ``"Less than 1 day"``.
    """

    if isinstance(days, bool) or not isinstance(days, (int, float)):
        return "N/A"
    if math.isnan(days) or math.isinf(days) or days < 0:
        return "N/A"
    total = int(days)
    if total == 0:
        return "Less than 1 day"

    years, remainder = divmod(total, DAYS_PER_YEAR)
    months, rest = divmod(remainder, DAYS_PER_MONTH)
    parts = []
    if years:
        parts.append(_plural(years, "year", "years"))
    if months:
        parts.append(_plural(months, "month", "months"))
    if rest:
        parts.append(_plural(rest, "day", "days"))
    return " ".join(parts)


def days_invested(first_contribution: Optional[date], last_entry: Optional[date]) -> int:
    if first_contribution is None or last_entry is None:
        return 0
    return max(0, (last_entry - first_contribution).days)


def temporal_metrics(
    total_investments: float,
    total_profits: float,
    first_contribution: Optional[date],
    last_entry: Optional[date],
) -> TemporalMetrics:
    """Derive every time-based figure from BTC totals and the active window."""

    days = days_invested(first_contribution, last_entry)
    roi = simple_roi(total_profits, total_investments)
    return TemporalMetrics(
        roi=roi,
        days_invested=days,
        duration_label=format_duration(days),
        annualized_roi=annualized_roi(total_profits, total_investments, days),
        daily_avg_profit_btc=total_profits / days if days > 0 else 0.0,
        daily_avg_roi_percent=roi / days if days > 0 else 0.0,
    )


def signed_profit_btc(entry: ParsedRecord) -> float:
    """BTC amount of a profit record, negative when it records a loss."""

    return entry.quantity_btc if getattr(entry.record, "is_profit", True) else -entry.quantity_btc


def _first(days: Iterable[date]) -> Optional[date]:
    return min(days, default=None)


def _last(days: Iterable[date]) -> Optional[date]:
    return max(days, default=None)


def stats_from_parsed(parsed: ParsedReport) -> ReportStatDetails:
    total_investments = sum(entry.quantity_btc for entry in parsed.investments)
    total_profits = sum(signed_profit_btc(entry) for entry in parsed.profits)
    total_withdrawals = sum(entry.quantity_btc for entry in parsed.withdrawals)

    # Only contributions open the window; profits can extend it.
    first = _first(entry.day for entry in parsed.investments)
    last = _last(entry.day for entry in (*parsed.investments, *parsed.profits))
    metrics = temporal_metrics(total_investments, total_profits, first, last)

    return ReportStatDetails(
        total_investments=total_investments,
        total_profits=total_profits,
        final_balance=total_investments + total_profits,
        roi=metrics.roi,
        first_contribution_date=first,
        last_entry_date=last,
        days_invested=metrics.days_invested,
        duration_label=metrics.duration_label,
        annualized_roi=metrics.annualized_roi,
        daily_avg_profit_btc=metrics.daily_avg_profit_btc,
        daily_avg_roi_percent=metrics.daily_avg_roi_percent,
        total_withdrawals=total_withdrawals,
    )


def compute_report_stats(report: Report) -> ReportStatDetails:
    """Whole-report BTC statistics; an empty report yields all zeros."""

    return stats_from_parsed(parse_report(report))


__all__ = [
    "TemporalMetrics",
    "simple_roi",
    "annualized_roi",
    "format_duration",
    "days_invested",
    "temporal_metrics",
    "signed_profit_btc",
    "stats_from_parsed",
    "compute_report_stats",
]
