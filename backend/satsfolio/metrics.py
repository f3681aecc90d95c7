"""Report-level profit and loss, ROI and balances in the display currency."""
from __future__ import annotations

import logging

from .models import CalculatedReportData, MonthlyRoi, Report, TotalBalance
from .normalizer import ReportFoundation, prepare_report_foundation
from .periods import fold_months
from .pricing import PriceOracle, QuoteGapPolicy
from .units import DisplayCurrency

logger = logging.getLogger(__name__)


def accumulated_roi(overall_pl: float, total_investments: float) -> float:
    if total_investments > 0:
        return overall_pl / total_investments * 100
    if overall_pl > 0:
        logger.warning("Positive P/L of %.8f with no recorded investment; ROI reported as 0", overall_pl)
    return 0.0


def calculate_report_metrics(foundation: ReportFoundation) -> CalculatedReportData:
    """Replay a prepared report and compute its totals and monthly series.

    Pure apart from logging: the same foundation always yields the same
    result.
    """

    if foundation.date_range is None or not foundation.operations:
        return CalculatedReportData(
            display_currency=foundation.display_currency,
            date_range=foundation.date_range,
            skipped_records=foundation.skipped_records,
        )

    date_range = foundation.date_range
    fold = fold_months(
        foundation.operations,
        foundation.display_quotes,
        start=date_range.start,
        end=date_range.end,
        gap_policy=foundation.gap_policy,
    )

    final = fold.final_state
    if final.quantity_btc > 0:
        price_usd = foundation.usd_quotes.price_on(date_range.end, foundation.gap_policy)
        price_display = foundation.display_quotes.price_on(date_range.end, foundation.gap_policy)
    else:
        price_usd = price_display = 0.0
    balance = TotalBalance(
        btc=final.quantity_btc,
        usd=final.quantity_btc * price_usd,
        display=final.quantity_btc * price_display,
    )

    unrealized = balance.display - final.cost_basis
    overall = fold.realized_pl + unrealized
    gaps = foundation.usd_quotes.gaps | foundation.display_quotes.gaps
    if gaps:
        logger.warning("Report valued with %d missing quote date(s)", len(gaps))

    return CalculatedReportData(
        display_currency=foundation.display_currency,
        realized_pl=fold.realized_pl,
        unrealized_pl=unrealized,
        overall_pl=overall,
        total_investments=fold.total_investments,
        total_withdrawals=fold.total_withdrawals,
        roi_accumulated=accumulated_roi(overall, fold.total_investments),
        total_balance=balance,
        roi_monthly=tuple(MonthlyRoi(month=m.month_year, percentage=m.monthly_roi) for m in fold.months),
        monthly_breakdown=fold.months,
        date_range=date_range,
        quote_gaps=tuple(sorted(gaps)),
        skipped_records=foundation.skipped_records,
    )


async def calculate_report(
    report: Report,
    oracle: PriceOracle,
    *,
    display_currency: DisplayCurrency | str = DisplayCurrency.USD,
    gap_policy: QuoteGapPolicy | str = QuoteGapPolicy.ZERO,
) -> CalculatedReportData:
    """Fetch quotes for ``report`` and compute its metrics."""

    foundation = await prepare_report_foundation(
        report,
        oracle,
        display_currency=display_currency,
        gap_policy=gap_policy,
    )
    return calculate_report_metrics(foundation)


__all__ = ["accumulated_roi", "calculate_report_metrics", "calculate_report"]
