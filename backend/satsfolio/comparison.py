"""Cross-report comparison: unified monthly timeline and aggregated stats."""
from __future__ import annotations

from dataclasses import replace
from datetime import date
from enum import Enum
from typing import Callable, Optional, Sequence

from .dates import add_months, iter_months, month_end, month_key, month_start
from .models import (
    AggregatedStats,
    ComparisonDataResult,
    DateRange,
    Report,
    ReportStatDetails,
    SeriesPoint,
    TimelineEntry,
)
from .normalizer import ParsedReport, parse_report
from .pricing import SpotRates
from .temporal import signed_profit_btc, stats_from_parsed, temporal_metrics
from .units import DisplayUnit, convert_from_btc

MONTH_LABEL_FORMAT = "%b %Y"

Converter = Callable[[float], float]


class ComparisonMode(str, Enum):
    ACCUMULATED = "accumulated"
    MONTHLY = "monthly"


def unit_converter(display_unit: DisplayUnit | str, rates: Optional[SpotRates]) -> Converter:
    """Return a BTC -> ``display_unit`` conversion bound to ``rates``."""

    unit = DisplayUnit(display_unit)
    if unit != DisplayUnit.BTC and rates is None:
        raise ValueError(f"spot rates are required to display a comparison in {unit.value}")
    return lambda value_btc: convert_from_btc(value_btc, unit, rates)


def _selection_range(parsed: Sequence[ParsedReport], today: date) -> DateRange:
    """Span of investment and profit dates; withdrawals never widen the timeline."""

    days = [entry.day for report in parsed for entry in (*report.investments, *report.profits)]
    if not days:
        current = month_start(today)
        return DateRange(start=add_months(current, -1), end=current)
    return DateRange(start=min(days), end=max(days))


def _series_point(parsed: ParsedReport, start: Optional[date], end: date, convert: Converter) -> SeriesPoint:
    def in_window(day: date) -> bool:
        return day <= end and (start is None or day >= start)

    investments = sum(entry.quantity_btc for entry in parsed.investments if in_window(entry.day))
    profits = sum(signed_profit_btc(entry) for entry in parsed.profits if in_window(entry.day))
    return SeriesPoint(
        investments_btc=investments,
        profits_btc=profits,
        balance_btc=investments + profits,
        investments=convert(investments),
        profits=convert(profits),
        balance=convert(investments + profits),
    )


def build_timeline(
    reports: Sequence[Report],
    parsed: Sequence[ParsedReport],
    date_range: DateRange,
    mode: ComparisonMode,
    convert: Optional[Converter] = None,
) -> tuple[TimelineEntry, ...]:
    """One entry per month of ``date_range`` with a series point per report."""

    convert = convert or unit_converter(DisplayUnit.BTC, None)
    timeline = []
    for first_day in iter_months(date_range.start, date_range.end):
        last_day = month_end(first_day)
        window_start = first_day if mode == ComparisonMode.MONTHLY else None
        series = {
            report.id: _series_point(parsed_report, window_start, last_day, convert)
            for report, parsed_report in zip(reports, parsed)
        }
        timeline.append(
            TimelineEntry(month=month_key(first_day), label=first_day.strftime(MONTH_LABEL_FORMAT), series=series)
        )
    return tuple(timeline)


def aggregate_stats(stats: Sequence[ReportStatDetails]) -> AggregatedStats:
    """Combine per-report stats; temporal figures are recomputed from the sums."""

    total_investments = sum(item.total_investments for item in stats)
    total_profits = sum(item.total_profits for item in stats)
    firsts = [item.first_contribution_date for item in stats if item.first_contribution_date]
    lasts = [item.last_entry_date for item in stats if item.last_entry_date]
    first = min(firsts, default=None)
    last = max(lasts, default=None)
    metrics = temporal_metrics(total_investments, total_profits, first, last)
    return AggregatedStats(
        total_investments=total_investments,
        total_profits=total_profits,
        balance=total_investments + total_profits,
        roi=metrics.roi,
        first_contribution_date=first,
        last_entry_date=last,
        days_invested=metrics.days_invested,
        duration_label=metrics.duration_label,
        annualized_roi=metrics.annualized_roi,
        daily_avg_profit_btc=metrics.daily_avg_profit_btc,
        daily_avg_roi_percent=metrics.daily_avg_roi_percent,
    )


def _converted_stats(stats: ReportStatDetails, convert: Converter) -> ReportStatDetails:
    return replace(
        stats,
        total_investments=convert(stats.total_investments),
        total_profits=convert(stats.total_profits),
        final_balance=convert(stats.final_balance),
        total_withdrawals=convert(stats.total_withdrawals),
    )


def compare_reports(
    reports: Sequence[Report],
    *,
    mode: ComparisonMode | str = ComparisonMode.ACCUMULATED,
    display_unit: DisplayUnit | str = DisplayUnit.BTC,
    rates: Optional[SpotRates] = None,
    today: Optional[date] = None,
) -> Optional[ComparisonDataResult]:
    """Compare the selected ``reports``.

    Returns ``None`` for an empty selection; callers treat that as nothing to
    display. Timeline series and money totals are converted from BTC into
    ``display_unit`` at the live ``rates``, which are required for ``usd`` and
    ``brl``. Percentages, durations and ``daily_avg_profit_btc`` stay BTC based.
    """

    if not reports:
        return None
    mode = ComparisonMode(mode)
    display_unit = DisplayUnit(display_unit)
    convert = unit_converter(display_unit, rates)
    parsed = [parse_report(report) for report in reports]
    date_range = _selection_range(parsed, today or date.today())
    stats_btc = {report.id: stats_from_parsed(item) for report, item in zip(reports, parsed)}
    aggregated = aggregate_stats(list(stats_btc.values()))
    return ComparisonDataResult(
        mode=mode.value,
        date_range=date_range,
        timeline=build_timeline(reports, parsed, date_range, mode, convert),
        stats={report_id: _converted_stats(item, convert) for report_id, item in stats_btc.items()},
        aggregated=replace(
            aggregated,
            total_investments=convert(aggregated.total_investments),
            total_profits=convert(aggregated.total_profits),
            balance=convert(aggregated.balance),
        ),
        report_names={report.id: report.name for report in reports},
        display_unit=display_unit.value,
    )


__all__ = ["ComparisonMode", "unit_converter", "build_timeline", "aggregate_stats", "compare_reports"]
