"""Pydantic schema exports."""

from .bitcoin import HistoricalQuotesResponse, SpotPriceResponse
from .reports import (
    CalculatedReportSchema,
    CompareRequest,
    ComparisonSchema,
    MetricsRequest,
    ReportPayload,
    ReportStatSchema,
    ReportSummarySchema,
    SummaryRequest,
)

__all__ = [
    "HistoricalQuotesResponse",
    "SpotPriceResponse",
    "CalculatedReportSchema",
    "CompareRequest",
    "ComparisonSchema",
    "MetricsRequest",
    "ReportPayload",
    "ReportStatSchema",
    "ReportSummarySchema",
    "SummaryRequest",
]
