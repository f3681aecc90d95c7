"""Core package for Satsfolio Bitcoin portfolio accounting."""

from .comparison import ComparisonMode, compare_reports
from .errors import DataError, QuoteGapError, SatsfolioError
from .gate import LatestResultGate
from .metrics import calculate_report, calculate_report_metrics
from .models import (
    CalculatedReportData,
    ComparisonDataResult,
    Investment,
    MonthlyBreakdown,
    ProfitRecord,
    Report,
    ReportStatDetails,
    ReportSummary,
    WithdrawalRecord,
)
from .pricing import CachingPriceOracle, InMemoryPriceOracle, PriceOracle, QuoteGapPolicy, SpotRates
from .summary import summarize_report
from .temporal import compute_report_stats
from .units import CurrencyUnit, DisplayCurrency, DisplayUnit

__all__ = [
    "ComparisonMode",
    "compare_reports",
    "DataError",
    "QuoteGapError",
    "SatsfolioError",
    "LatestResultGate",
    "calculate_report",
    "calculate_report_metrics",
    "CalculatedReportData",
    "ComparisonDataResult",
    "Investment",
    "MonthlyBreakdown",
    "ProfitRecord",
    "Report",
    "ReportStatDetails",
    "ReportSummary",
    "WithdrawalRecord",
    "CachingPriceOracle",
    "InMemoryPriceOracle",
    "PriceOracle",
    "QuoteGapPolicy",
    "SpotRates",
    "summarize_report",
    "compute_report_stats",
    "CurrencyUnit",
    "DisplayCurrency",
    "DisplayUnit",
]
