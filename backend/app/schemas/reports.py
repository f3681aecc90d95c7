"""Pydantic schemas for report calculation requests and results."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from satsfolio.models import Investment, ProfitRecord, Report, WithdrawalRecord, WithdrawalType
from satsfolio.units import DisplayCurrency, record_unit

# Amount and date stay loosely typed so malformed records reach the core,
# which skips them instead of failing the whole request. Any unit other
# than SATS (in any case) is read as BTC.
RawAmount = float | str | None


class InvestmentSchema(BaseModel):
    id: str
    date: str
    amount: RawAmount
    unit: str = "BTC"
    original_id: Optional[str] = None


class ProfitSchema(BaseModel):
    id: str
    date: str
    amount: RawAmount
    unit: str = "BTC"
    is_profit: bool = True
    original_id: Optional[str] = None


class WithdrawalSchema(BaseModel):
    id: str
    date: str
    amount: RawAmount
    unit: str = "BTC"
    fee: Optional[float] = None
    type: Optional[Literal["onchain", "lightning"]] = None
    txid: Optional[str] = None
    original_id: Optional[str] = None


class ReportPayload(BaseModel):
    id: str
    name: str
    investments: list[InvestmentSchema] = Field(default_factory=list)
    profits: list[ProfitSchema] = Field(default_factory=list)
    withdrawals: list[WithdrawalSchema] = Field(default_factory=list)
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "r1",
                "name": "Cold storage",
                "investments": [{"id": "i1", "date": "2024-01-01", "amount": 0.1, "unit": "BTC"}],
                "profits": [{"id": "p1", "date": "2024-06-01", "amount": 2000000, "unit": "SATS", "is_profit": True}],
                "withdrawals": [],
            }
        }
    )

    def to_report(self) -> Report:
        return Report(
            id=self.id,
            name=self.name,
            investments=tuple(
                Investment(id=i.id, date=i.date, amount=i.amount, unit=record_unit(i.unit), original_id=i.original_id)
                for i in self.investments
            ),
            profits=tuple(
                ProfitRecord(
                    id=p.id,
                    date=p.date,
                    amount=p.amount,
                    unit=record_unit(p.unit),
                    is_profit=p.is_profit,
                    original_id=p.original_id,
                )
                for p in self.profits
            ),
            withdrawals=tuple(
                WithdrawalRecord(
                    id=w.id,
                    date=w.date,
                    amount=w.amount,
                    unit=record_unit(w.unit),
                    fee=w.fee,
                    type=WithdrawalType(w.type) if w.type else None,
                    txid=w.txid,
                    original_id=w.original_id,
                )
                for w in self.withdrawals
            ),
            created_at=self.created_at,
            updated_at=self.updated_at,
            description=self.description,
            color=self.color,
        )


class MetricsRequest(BaseModel):
    report: ReportPayload
    display_currency: Optional[Literal["USD", "BRL"]] = None
    gap_policy: Optional[Literal["fail", "nearest", "zero"]] = None


class SummaryRequest(BaseModel):
    report: ReportPayload
    display_currency: Optional[Literal["USD", "BRL"]] = None
    period_description: Optional[str] = None


class CompareRequest(BaseModel):
    reports: list[ReportPayload] = Field(default_factory=list)
    mode: Literal["accumulated", "monthly"] = "accumulated"
    display_unit: Literal["btc", "usd", "brl"] = "btc"


class _FromCore(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class DateRangeSchema(_FromCore):
    start: date
    end: date


class MonthlyBreakdownSchema(_FromCore):
    month_year: str
    investments: float
    withdrawals: float
    realized_pl: float
    unrealized_pl: float
    overall_pl: float
    end_btc_balance: float
    end_balance_display: float
    monthly_roi: float
    investments_btc: float
    withdrawals_btc: float


class MonthlyRoiSchema(_FromCore):
    month: str
    percentage: float


class TotalBalanceSchema(_FromCore):
    btc: float
    usd: float
    display: float


class CalculatedReportSchema(_FromCore):
    display_currency: DisplayCurrency
    realized_pl: float
    unrealized_pl: float
    overall_pl: float
    total_investments: float
    total_withdrawals: float
    roi_accumulated: float
    total_balance: TotalBalanceSchema
    roi_monthly: list[MonthlyRoiSchema]
    monthly_breakdown: list[MonthlyBreakdownSchema]
    date_range: Optional[DateRangeSchema] = None
    quote_gaps: list[str]
    degraded: bool
    skipped_records: int


class ReportStatSchema(_FromCore):
    total_investments: float
    total_profits: float
    final_balance: float
    roi: float
    first_contribution_date: Optional[date] = None
    last_entry_date: Optional[date] = None
    days_invested: int
    duration_label: str
    annualized_roi: float
    daily_avg_profit_btc: float
    daily_avg_roi_percent: float
    total_withdrawals: float


class ReportSummarySchema(_FromCore):
    report_name: str
    report_period: str
    display_currency: DisplayCurrency
    total_investments_btc: float
    total_profits_btc: float
    total_balance_btc: float
    total_investments_display: float
    total_profits_display: float
    total_balance_display: float
    stats: ReportStatSchema
    current_btc_price_usd: float
    current_btc_price_brl: float
    generated_at: datetime


class SeriesPointSchema(_FromCore):
    investments_btc: float
    profits_btc: float
    balance_btc: float
    investments: float
    profits: float
    balance: float


class TimelineEntrySchema(_FromCore):
    month: str
    label: str
    series: dict[str, SeriesPointSchema]


class AggregatedStatsSchema(_FromCore):
    total_investments: float
    total_profits: float
    balance: float
    roi: float
    first_contribution_date: Optional[date] = None
    last_entry_date: Optional[date] = None
    days_invested: int
    duration_label: str
    annualized_roi: float
    daily_avg_profit_btc: float
    daily_avg_roi_percent: float


class ComparisonSchema(_FromCore):
    mode: Literal["accumulated", "monthly"]
    date_range: DateRangeSchema
    timeline: list[TimelineEntrySchema]
    stats: dict[str, ReportStatSchema]
    aggregated: AggregatedStatsSchema
    report_names: dict[str, str]
    display_unit: Literal["btc", "usd", "brl"]


__all__ = [
    "InvestmentSchema",
    "ProfitSchema",
    "WithdrawalSchema",
    "ReportPayload",
    "MetricsRequest",
    "SummaryRequest",
    "CompareRequest",
    "CalculatedReportSchema",
    "ReportStatSchema",
    "ReportSummarySchema",
    "ComparisonSchema",
]
