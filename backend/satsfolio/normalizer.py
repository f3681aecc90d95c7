"""Turn raw report records into priced, date-sorted operations."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Union

from .dates import month_start, parse_timestamp
from .errors import DataError
from .models import (
    BuyOperation,
    DateRange,
    Investment,
    Operation,
    ProfitRecord,
    QuotePair,
    Report,
    SellOperation,
    SellSource,
    WithdrawalRecord,
)
from .pricing import PriceOracle, QuoteBook, QuoteGapPolicy
from .units import CurrencyUnit, DisplayCurrency, record_unit, to_btc

logger = logging.getLogger(__name__)

RawRecord = Union[Investment, ProfitRecord, WithdrawalRecord]


@dataclass(frozen=True)
class ParsedRecord:
    """A record whose date and amount survived validation."""

    record: RawRecord
    timestamp: datetime
    quantity_btc: float

    @property
    def day(self) -> date:
        return self.timestamp.date()


@dataclass(frozen=True)
class ReportFoundation:
    operations: tuple[Operation, ...]
    usd_quotes: QuoteBook
    display_quotes: QuoteBook
    display_currency: DisplayCurrency
    date_range: DateRange | None
    gap_policy: QuoteGapPolicy
    skipped_records: int = 0


def parse_record(record: RawRecord) -> ParsedRecord:
    """Validate one record's date and amount, raising ``DataError`` if malformed."""

    record_id = getattr(record, "id", None)
    try:
        timestamp = parse_timestamp(record.date)
    except (TypeError, ValueError) as exc:
        raise DataError(record_id, f"unparsable date {record.date!r}") from exc
    amount = record.amount
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
        raise DataError(record_id, f"non-numeric amount {amount!r}")
    unit = record_unit(record.unit)
    if unit == CurrencyUnit.BTC and record.unit not in (None, CurrencyUnit.BTC):
        logger.debug("Record %s has unit %r; treating amount as BTC", record_id, record.unit)
    return ParsedRecord(record=record, timestamp=timestamp, quantity_btc=to_btc(float(amount), unit))


def parse_records(records: Iterable[RawRecord] | None, kind: str) -> tuple[list[ParsedRecord], int]:
    """Parse ``records``, logging and dropping malformed ones.

    Returns the parsed records in their original order and the number skipped.
    """

    parsed: list[ParsedRecord] = []
    skipped = 0
    for record in records or ():
        try:
            parsed.append(parse_record(record))
        except DataError as exc:
            skipped += 1
            logger.warning("Skipping invalid %s record %s", kind, exc)
    return parsed, skipped


@dataclass(frozen=True)
class ParsedReport:
    investments: list[ParsedRecord]
    profits: list[ParsedRecord]
    withdrawals: list[ParsedRecord]
    skipped: int

    def all_records(self) -> list[ParsedRecord]:
        return [*self.investments, *self.profits, *self.withdrawals]

    def date_range(self) -> DateRange | None:
        days = [entry.day for entry in self.all_records()]
        if not days:
            return None
        return DateRange(start=min(days), end=max(days))


def parse_report(report: Report) -> ParsedReport:
    investments, skipped_investments = parse_records(report.investments, "investment")
    profits, skipped_profits = parse_records(report.profits, "profit")
    withdrawals, skipped_withdrawals = parse_records(report.withdrawals, "withdrawal")
    return ParsedReport(
        investments=investments,
        profits=profits,
        withdrawals=withdrawals,
        skipped=skipped_investments + skipped_profits + skipped_withdrawals,
    )


def _priced(
    entry: ParsedRecord,
    usd_quotes: QuoteBook,
    display_quotes: QuoteBook,
    policy: QuoteGapPolicy,
) -> tuple[QuotePair, QuotePair]:
    price_usd = usd_quotes.price_on(entry.day, policy)
    price_display = display_quotes.price_on(entry.day, policy)
    price = QuotePair(usd=price_usd, display=price_display)
    total = QuotePair(usd=entry.quantity_btc * price_usd, display=entry.quantity_btc * price_display)
    return price, total


def build_operations(
    parsed: ParsedReport,
    usd_quotes: QuoteBook,
    display_quotes: QuoteBook,
    *,
    gap_policy: QuoteGapPolicy = QuoteGapPolicy.ZERO,
) -> list[Operation]:
    """Produce one operation per parsed record, sorted by timestamp.

    Investments become buys; profit and withdrawal records become sells.
    ``sorted`` is stable, so same-timestamp operations keep the order
    investments, profits, withdrawals and their order within each list.
    """

    operations: list[Operation] = []
    for entry in parsed.investments:
        price, total = _priced(entry, usd_quotes, display_quotes, gap_policy)
        operations.append(
            BuyOperation(
                id=entry.record.id,
                timestamp=entry.timestamp,
                quantity_btc=entry.quantity_btc,
                price_per_unit=price,
                total_amount=total,
            )
        )
    for source, entries in ((SellSource.PROFIT, parsed.profits), (SellSource.WITHDRAWAL, parsed.withdrawals)):
        for entry in entries:
            price, total = _priced(entry, usd_quotes, display_quotes, gap_policy)
            operations.append(
                SellOperation(
                    id=entry.record.id,
                    timestamp=entry.timestamp,
                    quantity_btc=entry.quantity_btc,
                    price_per_unit=price,
                    total_amount=total,
                    source=source,
                    is_profit_context=getattr(entry.record, "is_profit", None),
                )
            )
    operations.sort(key=lambda op: op.timestamp)
    return operations


def quote_window_start(date_range: DateRange) -> date:
    """First day to fetch quotes for: the eve of the first month in range."""

    return month_start(date_range.start) - timedelta(days=1)


async def prepare_report_foundation(
    report: Report,
    oracle: PriceOracle,
    *,
    display_currency: DisplayCurrency | str = DisplayCurrency.USD,
    gap_policy: QuoteGapPolicy | str = QuoteGapPolicy.ZERO,
) -> ReportFoundation:
    """Fetch quotes for the report's date range and build its operations.

    The oracle calls are fully awaited before any operation is priced. Oracle
    failures propagate to the caller.
    """

    display_currency = DisplayCurrency(display_currency)
    gap_policy = QuoteGapPolicy(gap_policy)
    parsed = parse_report(report)
    date_range = parsed.date_range()

    usd_raw: dict[str, float] = {}
    display_raw: dict[str, float] = {}
    if date_range is not None:
        fetch_start = quote_window_start(date_range)
        if display_currency == DisplayCurrency.USD:
            usd_raw = await oracle.get_historical_quotes(DisplayCurrency.USD, fetch_start, date_range.end)
            display_raw = usd_raw
        else:
            usd_raw, display_raw = await asyncio.gather(
                oracle.get_historical_quotes(DisplayCurrency.USD, fetch_start, date_range.end),
                oracle.get_historical_quotes(display_currency, fetch_start, date_range.end),
            )
        logger.info(
            "Loaded %d USD and %d %s quotes for %s..%s",
            len(usd_raw),
            len(display_raw),
            display_currency.value,
            fetch_start,
            date_range.end,
        )

    usd_quotes = QuoteBook(DisplayCurrency.USD, usd_raw)
    display_quotes = usd_quotes if display_currency == DisplayCurrency.USD else QuoteBook(display_currency, display_raw)
    operations = build_operations(parsed, usd_quotes, display_quotes, gap_policy=gap_policy)
    logger.debug("Report %s normalized into %d operations", report.id, len(operations))
    return ReportFoundation(
        operations=tuple(operations),
        usd_quotes=usd_quotes,
        display_quotes=display_quotes,
        display_currency=display_currency,
        date_range=date_range,
        gap_policy=gap_policy,
        skipped_records=parsed.skipped,
    )


__all__ = [
    "ParsedRecord",
    "ParsedReport",
    "ReportFoundation",
    "parse_record",
    "parse_records",
    "parse_report",
    "build_operations",
    "quote_window_start",
    "prepare_report_foundation",
]
