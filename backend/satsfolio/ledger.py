"""Weighted-average cost-basis ledger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .models import BuyOperation, Operation, SellOperation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerState:
    """Running position: BTC held and its remaining cost in display currency."""

    quantity_btc: float = 0.0
    cost_basis: float = 0.0

    @property
    def average_cost(self) -> float:
        if self.quantity_btc <= 0:
            return 0.0
        return self.cost_basis / self.quantity_btc


@dataclass(frozen=True)
class Disposal:
    operation_id: str
    quantity_btc: float
    proceeds: float
    cost_of_sold: float
    realized_pl: float


def operation_amount(op: Operation) -> float:
    """Display-currency value of an operation."""

    if op.total_amount is not None:
        return op.total_amount.display
    return op.quantity_btc * op.price_per_unit.display


class CostBasisLedger:
    """Replays operations with the weighted-average (CMP) method.

    Quantity and cost basis are clamped at zero. Selling more than is held
    only removes the cost of the quantity actually held; the proceeds of the
    excess count as realized profit.
    """

    def __init__(self, state: LedgerState | None = None):
        state = state or LedgerState()
        self._quantity = state.quantity_btc
        self._cost = state.cost_basis

    @property
    def quantity_btc(self) -> float:
        return self._quantity

    @property
    def cost_basis(self) -> float:
        return self._cost

    def snapshot(self) -> LedgerState:
        return LedgerState(quantity_btc=self._quantity, cost_basis=self._cost)

    def buy(self, op: BuyOperation) -> float:
        amount = operation_amount(op)
        self._quantity += op.quantity_btc
        self._cost += amount
        return amount

    def sell(self, op: SellOperation) -> Disposal:
        proceeds = operation_amount(op)
        if op.quantity_btc > self._quantity:
            logger.warning(
                "Sell %s of %.8f BTC exceeds held %.8f BTC; clamping position", op.id, op.quantity_btc, self._quantity
            )
        cost_of_sold = 0.0
        if self._quantity > 0 and op.quantity_btc > 0:
            average_cost = self._cost / self._quantity
            cost_of_sold = min(op.quantity_btc, self._quantity) * average_cost
            self._cost = max(0.0, self._cost - cost_of_sold)
        self._quantity = max(0.0, self._quantity - op.quantity_btc)
        if self._quantity == 0:
            self._cost = 0.0
        return Disposal(
            operation_id=op.id,
            quantity_btc=op.quantity_btc,
            proceeds=proceeds,
            cost_of_sold=cost_of_sold,
            realized_pl=proceeds - cost_of_sold,
        )

    def apply(self, op: Operation) -> Disposal | None:
        if op.kind == "buy":
            self.buy(op)
            return None
        return self.sell(op)


@dataclass
class ReplayResult:
    state: LedgerState
    investments: float = 0.0
    withdrawals: float = 0.0
    investments_btc: float = 0.0
    withdrawals_btc: float = 0.0
    realized_pl: float = 0.0
    disposals: list[Disposal] = field(default_factory=list)


def replay(operations: Iterable[Operation], start: LedgerState | None = None) -> ReplayResult:
    """Run ``operations`` (already in date order) through a fresh ledger."""

    ledger = CostBasisLedger(start)
    result = ReplayResult(state=ledger.snapshot())
    for op in operations:
        if op.kind == "buy":
            result.investments += ledger.buy(op)
            result.investments_btc += op.quantity_btc
        else:
            disposal = ledger.sell(op)
            result.withdrawals += disposal.proceeds
            result.withdrawals_btc += op.quantity_btc
            result.realized_pl += disposal.realized_pl
            result.disposals.append(disposal)
    result.state = ledger.snapshot()
    return result


__all__ = [
    "LedgerState",
    "Disposal",
    "CostBasisLedger",
    "ReplayResult",
    "operation_amount",
    "replay",
]
