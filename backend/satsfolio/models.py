"""Domain models used by the portfolio calculation core."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Literal, Mapping, Optional, Sequence, Union

from .units import CurrencyUnit, DisplayCurrency

RecordDate = Union[str, date, datetime]


class WithdrawalType(str, Enum):
    ONCHAIN = "onchain"
    LIGHTNING = "lightning"


class SellSource(str, Enum):
    PROFIT = "profit"
    WITHDRAWAL = "withdrawal"


@dataclass(frozen=True)
class Investment:
    """A contribution of BTC (or sats) to a report."""

    id: str
    date: RecordDate
    amount: float
    unit: CurrencyUnit = CurrencyUnit.BTC
    original_id: Optional[str] = None


@dataclass(frozen=True)
class ProfitRecord:
    """A realized gain or loss; the sign lives in ``is_profit``."""

    id: str
    date: RecordDate
    amount: float
    unit: CurrencyUnit = CurrencyUnit.BTC
    is_profit: bool = True
    original_id: Optional[str] = None


@dataclass(frozen=True)
class WithdrawalRecord:
    id: str
    date: RecordDate
    amount: float
    unit: CurrencyUnit = CurrencyUnit.BTC
    fee: Optional[float] = None
    type: Optional[WithdrawalType] = None
    txid: Optional[str] = None
    original_id: Optional[str] = None


@dataclass(frozen=True)
class Report:
    """A named collection of investments, profit records and withdrawals."""

    id: str
    name: str
    investments: Sequence[Investment] = ()
    profits: Sequence[ProfitRecord] = ()
    withdrawals: Sequence[WithdrawalRecord] = ()
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class QuotePair:
    """A monetary value in USD and in the chosen display currency."""

    usd: float
    display: float


@dataclass(frozen=True)
class BuyOperation:
    id: str
    timestamp: datetime
    quantity_btc: float
    price_per_unit: QuotePair
    total_amount: Optional[QuotePair] = None
    kind: Literal["buy"] = "buy"

    @property
    def day(self) -> date:
        return self.timestamp.date()


@dataclass(frozen=True)
class SellOperation:
    id: str
    timestamp: datetime
    quantity_btc: float
    price_per_unit: QuotePair
    total_amount: Optional[QuotePair] = None
    source: SellSource = SellSource.PROFIT
    is_profit_context: Optional[bool] = None
    kind: Literal["sell"] = "sell"

    @property
    def day(self) -> date:
        return self.timestamp.date()


Operation = Union[BuyOperation, SellOperation]


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date


@dataclass(frozen=True)
class MonthlyBreakdown:
    """Metrics for one calendar month, in the display currency unless noted."""

    month_year: str
    investments: float
    withdrawals: float
    realized_pl: float
    unrealized_pl: float
    overall_pl: float
    end_btc_balance: float
    end_balance_display: float
    monthly_roi: float
    investments_btc: float = 0.0
    withdrawals_btc: float = 0.0


@dataclass(frozen=True)
class MonthlyRoi:
    month: str
    percentage: float


@dataclass(frozen=True)
class TotalBalance:
    btc: float = 0.0
    usd: float = 0.0
    display: float = 0.0


@dataclass(frozen=True)
class CalculatedReportData:
    display_currency: DisplayCurrency
    realized_pl: float = 0.0
    unrealized_pl: float = 0.0
    overall_pl: float = 0.0
    total_investments: float = 0.0
    total_withdrawals: float = 0.0
    roi_accumulated: float = 0.0
    total_balance: TotalBalance = field(default_factory=TotalBalance)
    roi_monthly: tuple[MonthlyRoi, ...] = ()
    monthly_breakdown: tuple[MonthlyBreakdown, ...] = ()
    date_range: Optional[DateRange] = None
    quote_gaps: tuple[str, ...] = ()
    skipped_records: int = 0

    @property
    def degraded(self) -> bool:
        """True when any valuation fell back because a quote was missing."""

        return bool(self.quote_gaps)


@dataclass(frozen=True)
class ReportStatDetails:
    """Whole-report summary in BTC, recomputed per call."""

    total_investments: float = 0.0
    total_profits: float = 0.0
    final_balance: float = 0.0
    roi: float = 0.0
    first_contribution_date: Optional[date] = None
    last_entry_date: Optional[date] = None
    days_invested: int = 0
    duration_label: str = "Less than 1 day"
    annualized_roi: float = 0.0
    daily_avg_profit_btc: float = 0.0
    daily_avg_roi_percent: float = 0.0
    total_withdrawals: float = 0.0


@dataclass(frozen=True)
class ReportSummary:
    report_name: str
    report_period: str
    display_currency: DisplayCurrency
    total_investments_btc: float
    total_profits_btc: float
    total_balance_btc: float
    total_investments_display: float
    total_profits_display: float
    total_balance_display: float
    stats: ReportStatDetails
    current_btc_price_usd: float
    current_btc_price_brl: float
    generated_at: datetime


@dataclass(frozen=True)
class SeriesPoint:
    """One report's month in BTC plus the same figures in the display unit."""

    investments_btc: float
    profits_btc: float
    balance_btc: float
    investments: float = 0.0
    profits: float = 0.0
    balance: float = 0.0


@dataclass(frozen=True)
class TimelineEntry:
    month: str
    label: str
    series: Mapping[str, SeriesPoint]


@dataclass(frozen=True)
class AggregatedStats:
    total_investments: float = 0.0
    total_profits: float = 0.0
    balance: float = 0.0
    roi: float = 0.0
    first_contribution_date: Optional[date] = None
    last_entry_date: Optional[date] = None
    days_invested: int = 0
    duration_label: str = "Less than 1 day"
    annualized_roi: float = 0.0
    daily_avg_profit_btc: float = 0.0
    daily_avg_roi_percent: float = 0.0


@dataclass(frozen=True)
class ComparisonDataResult:
    mode: str
    date_range: DateRange
    timeline: tuple[TimelineEntry, ...]
    stats: Mapping[str, ReportStatDetails]
    aggregated: AggregatedStats
    report_names: Mapping[str, str] = field(default_factory=dict)
    display_unit: str = "btc"
