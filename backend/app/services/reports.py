"""Report calculation service wrapping the satsfolio core with tracing."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from opentelemetry import metrics, trace

from app.config import AppSettings, get_settings
from satsfolio.comparison import ComparisonMode, compare_reports
from satsfolio.metrics import calculate_report_metrics
from satsfolio.models import CalculatedReportData, ComparisonDataResult, Report, ReportSummary
from satsfolio.normalizer import prepare_report_foundation
from satsfolio.pricing import PriceOracle, QuoteGapPolicy, SpotRates
from satsfolio.summary import summarize_report
from satsfolio.units import DisplayCurrency, DisplayUnit

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)
meter = metrics.get_meter(__name__)
calculation_counter = meter.create_counter(
    "satsfolio.report.calculations",
    description="Report calculations by kind",
)
degraded_counter = meter.create_counter(
    "satsfolio.report.degraded",
    description="Report calculations that used estimated quotes",
)


class ReportService:
    """Runs report calculations against an injected price oracle."""

    def __init__(self, oracle: PriceOracle, settings: AppSettings | None = None):
        self.oracle = oracle
        self.settings = settings or get_settings()

    def _display_currency(self, value: str | None) -> DisplayCurrency:
        return DisplayCurrency(value or self.settings.default_display_currency)

    async def metrics(
        self,
        report: Report,
        *,
        display_currency: str | None = None,
        gap_policy: str | None = None,
    ) -> CalculatedReportData:
        currency = self._display_currency(display_currency)
        policy = QuoteGapPolicy(gap_policy or self.settings.quote_gap_policy)
        with tracer.start_as_current_span("satsfolio.report.metrics") as span:
            span.set_attribute("report.id", report.id)
            span.set_attribute("report.display_currency", currency.value)
            span.set_attribute("report.gap_policy", policy.value)
            foundation = await prepare_report_foundation(
                report,
                self.oracle,
                display_currency=currency,
                gap_policy=policy,
            )
            span.set_attribute("report.operations", len(foundation.operations))
            result = calculate_report_metrics(foundation)
            span.set_attribute("report.months", len(result.monthly_breakdown))
            span.set_attribute("report.degraded", result.degraded)
        calculation_counter.add(1, {"kind": "metrics", "currency": currency.value})
        if result.degraded:
            degraded_counter.add(1, {"currency": currency.value})
            logger.info("Report %s used estimated quotes for %d date(s)", report.id, len(result.quote_gaps))
        return result

    def summary(
        self,
        report: Report,
        rates: SpotRates,
        *,
        display_currency: str | None = None,
        period_description: str | None = None,
    ) -> ReportSummary:
        currency = self._display_currency(display_currency)
        with tracer.start_as_current_span("satsfolio.report.summary") as span:
            span.set_attribute("report.id", report.id)
            result = summarize_report(report, rates, currency, period_description=period_description)
        calculation_counter.add(1, {"kind": "summary", "currency": currency.value})
        return result

    def compare(
        self,
        reports: Sequence[Report],
        *,
        mode: str = ComparisonMode.ACCUMULATED.value,
        display_unit: str = DisplayUnit.BTC.value,
        rates: SpotRates | None = None,
    ) -> Optional[ComparisonDataResult]:
        with tracer.start_as_current_span("satsfolio.report.compare") as span:
            span.set_attribute("comparison.reports", len(reports))
            span.set_attribute("comparison.mode", mode)
            span.set_attribute("comparison.display_unit", display_unit)
            result = compare_reports(reports, mode=mode, display_unit=display_unit, rates=rates)
        calculation_counter.add(1, {"kind": "compare", "unit": display_unit})
        if result is None:
            logger.info("Comparison requested with an empty selection")
        return result


__all__ = ["ReportService"]
