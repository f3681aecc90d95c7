"""Monthly breakdown built from one chronological fold over the ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence

from .dates import iter_months, month_end, month_key
from .ledger import LedgerState, replay
from .models import MonthlyBreakdown, Operation
from .pricing import QuoteBook, QuoteGapPolicy


@dataclass(frozen=True)
class MonthSnapshot:
    """Ledger state and valuation at one month boundary."""

    month_start: date
    month_end: date
    opening: LedgerState
    closing: LedgerState
    opening_price: float
    closing_price: float


@dataclass(frozen=True)
class PeriodFold:
    months: tuple[MonthlyBreakdown, ...]
    snapshots: tuple[MonthSnapshot, ...]
    final_state: LedgerState
    realized_pl: float
    total_investments: float
    total_withdrawals: float


def monthly_roi(overall_pl: float, opening_value: float, opening_cost: float, investments: float) -> float:
    """ROI of a month against the larger of its opening value or cost plus new money."""

    denominator = max(opening_value, opening_cost) + investments
    if denominator == 0:
        return 0.0
    return overall_pl / denominator * 100


def fold_months(
    operations: Sequence[Operation],
    quotes: QuoteBook,
    *,
    start: date,
    end: date,
    gap_policy: QuoteGapPolicy = QuoteGapPolicy.NEAREST,
    opening: LedgerState | None = None,
) -> PeriodFold:
    """Fold date-sorted ``operations`` month by month from ``start`` to ``end``.

    Every calendar month in the range is emitted, including months without
    activity. Each month's replay starts from the previous month's closing
    ledger state.
    """

    strict = QuoteGapPolicy(gap_policy) == QuoteGapPolicy.FAIL
    state = opening or LedgerState()
    months: list[MonthlyBreakdown] = []
    snapshots: list[MonthSnapshot] = []
    realized_total = 0.0
    investments_total = 0.0
    withdrawals_total = 0.0
    index = 0

    for first_day in iter_months(start, end):
        last_day = month_end(first_day)
        month_ops: list[Operation] = []
        while index < len(operations) and operations[index].timestamp.date() <= last_day:
            month_ops.append(operations[index])
            index += 1

        result = replay(month_ops, start=state)
        closing = result.state

        opening_price = quotes.price_at_or_before(first_day, strict=strict) if state.quantity_btc > 0 else 0.0
        closing_price = quotes.price_at_or_before(last_day, strict=strict) if closing.quantity_btc > 0 else 0.0
        opening_value = state.quantity_btc * opening_price
        closing_value = closing.quantity_btc * closing_price

        unrealized = (closing_value - closing.cost_basis) - (opening_value - state.cost_basis)
        overall = result.realized_pl + unrealized
        months.append(
            MonthlyBreakdown(
                month_year=month_key(first_day),
                investments=result.investments,
                withdrawals=result.withdrawals,
                realized_pl=result.realized_pl,
                unrealized_pl=unrealized,
                overall_pl=overall,
                end_btc_balance=closing.quantity_btc,
                end_balance_display=closing_value,
                monthly_roi=monthly_roi(overall, opening_value, state.cost_basis, result.investments),
                investments_btc=result.investments_btc,
                withdrawals_btc=result.withdrawals_btc,
            )
        )
        snapshots.append(
            MonthSnapshot(
                month_start=first_day,
                month_end=last_day,
                opening=state,
                closing=closing,
                opening_price=opening_price,
                closing_price=closing_price,
            )
        )
        realized_total += result.realized_pl
        investments_total += result.investments
        withdrawals_total += result.withdrawals
        state = closing

    return PeriodFold(
        months=tuple(months),
        snapshots=tuple(snapshots),
        final_state=state,
        realized_pl=realized_total,
        total_investments=investments_total,
        total_withdrawals=withdrawals_total,
    )


__all__ = ["MonthSnapshot", "PeriodFold", "fold_months", "monthly_roi"]
