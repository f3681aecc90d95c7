"""Monthly fold tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from satsfolio.dates import date_key
from satsfolio.errors import QuoteGapError
from satsfolio.ledger import LedgerState
from satsfolio.models import BuyOperation, QuotePair, SellOperation
from satsfolio.periods import fold_months, monthly_roi
from satsfolio.pricing import QuoteBook, QuoteGapPolicy
from satsfolio.units import DisplayCurrency


def _daily(start: date, end: date, price: float) -> dict[str, float]:
    days = (end - start).days + 1
    return {date_key(start + timedelta(days=i)): price for i in range(days)}


def _book() -> QuoteBook:
    quotes = {}
    quotes.update(_daily(date(2024, 1, 1), date(2024, 1, 31), 100.0))
    quotes.update(_daily(date(2024, 2, 1), date(2024, 2, 29), 150.0))
    quotes.update(_daily(date(2024, 3, 1), date(2024, 3, 31), 120.0))
    return QuoteBook(DisplayCurrency.USD, quotes)


def _op(cls, op_id: str, day: date, qty: float, price: float):
    return cls(
        id=op_id,
        timestamp=datetime(day.year, day.month, day.day),
        quantity_btc=qty,
        price_per_unit=QuotePair(usd=price, display=price),
        total_amount=QuotePair(usd=qty * price, display=qty * price),
    )


OPERATIONS = [
    _op(BuyOperation, "b1", date(2024, 1, 10), 1.0, 100.0),
    _op(SellOperation, "s1", date(2024, 3, 15), 0.5, 120.0),
]


def test_every_month_is_emitted_and_state_is_threaded():
    fold = fold_months(OPERATIONS, _book(), start=date(2024, 1, 10), end=date(2024, 3, 15))

    assert [m.month_year for m in fold.months] == ["2024-01", "2024-02", "2024-03"]
    january, february, march = fold.months

    assert january.investments == pytest.approx(100.0)
    assert january.unrealized_pl == pytest.approx(0.0)
    assert january.end_btc_balance == pytest.approx(1.0)

    assert february.investments == 0.0
    assert february.withdrawals == 0.0
    assert february.end_balance_display == pytest.approx(150.0)
    assert fold.snapshots[1].opening == fold.snapshots[0].closing

    assert march.realized_pl == pytest.approx(10.0)
    assert march.unrealized_pl == pytest.approx((60.0 - 50.0) - (120.0 - 100.0))
    assert march.overall_pl == pytest.approx(0.0)
    assert march.end_btc_balance == pytest.approx(0.5)
    assert fold.final_state == LedgerState(quantity_btc=0.5, cost_basis=50.0)


def test_monthly_sums_match_totals():
    fold = fold_months(OPERATIONS, _book(), start=date(2024, 1, 10), end=date(2024, 3, 15))

    assert sum(m.investments for m in fold.months) == pytest.approx(fold.total_investments)
    assert sum(m.withdrawals for m in fold.months) == pytest.approx(fold.total_withdrawals)
    assert sum(m.investments_btc for m in fold.months) == pytest.approx(1.0)
    assert sum(m.withdrawals_btc for m in fold.months) == pytest.approx(0.5)
    assert fold.realized_pl == pytest.approx(10.0)


def test_month_can_be_replayed_from_a_known_snapshot():
    fold = fold_months(
        [],
        _book(),
        start=date(2024, 2, 1),
        end=date(2024, 2, 29),
        opening=LedgerState(quantity_btc=1.0, cost_basis=100.0),
    )

    [february] = fold.months
    assert february.unrealized_pl == pytest.approx(0.0)
    assert february.end_balance_display == pytest.approx(150.0)
    assert february.monthly_roi == pytest.approx(0.0)


def test_month_end_without_quote_uses_last_known_price():
    book = QuoteBook(DisplayCurrency.USD, _daily(date(2024, 1, 1), date(2024, 1, 20), 100.0))
    ops = [_op(BuyOperation, "b1", date(2024, 1, 10), 1.0, 100.0)]

    fold = fold_months(ops, book, start=date(2024, 1, 10), end=date(2024, 1, 20))

    assert fold.months[0].end_balance_display == pytest.approx(100.0)
    assert book.gaps == set()


def test_fail_policy_raises_when_no_quote_precedes_a_valuation():
    book = QuoteBook(DisplayCurrency.USD, {"2024-02-15": 100.0})

    with pytest.raises(QuoteGapError):
        fold_months(
            [],
            book,
            start=date(2024, 2, 1),
            end=date(2024, 2, 29),
            gap_policy=QuoteGapPolicy.FAIL,
            opening=LedgerState(quantity_btc=1.0, cost_basis=100.0),
        )


def test_empty_position_needs_no_quotes():
    book = QuoteBook(DisplayCurrency.USD, {})

    fold = fold_months([], book, start=date(2024, 1, 1), end=date(2024, 2, 1), gap_policy=QuoteGapPolicy.FAIL)

    assert len(fold.months) == 2
    assert all(m.overall_pl == 0.0 for m in fold.months)


def test_monthly_roi_denominator():
    assert monthly_roi(10.0, opening_value=80.0, opening_cost=100.0, investments=100.0) == pytest.approx(5.0)
    assert monthly_roi(10.0, opening_value=0.0, opening_cost=0.0, investments=0.0) == 0.0
