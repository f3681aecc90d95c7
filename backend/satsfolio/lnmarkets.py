"""Convert LN Markets API payloads into report records.

Only the mapping lives here; fetching the payloads is the job of an import
connector.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from .dates import date_key, parse_timestamp
from .models import Investment, ProfitRecord, WithdrawalRecord, WithdrawalType
from .units import CurrencyUnit

Payload = Mapping[str, Any]


def _payload_day(value: Any) -> str:
    """LN Markets timestamps are epoch milliseconds or ISO strings."""

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        return date_key(moment.date())
    return date_key(parse_timestamp(value).date())


def trade_to_profit(trade: Payload) -> ProfitRecord:
    """A closed trade becomes a profit record of ``|pl|`` sats."""

    pl = trade.get("pl") or 0
    return ProfitRecord(
        id=f"lnm_trade_{trade['id']}",
        original_id=str(trade["id"]),
        date=_payload_day(trade.get("closed_at") or trade.get("updated_at")),
        amount=abs(pl),
        unit=CurrencyUnit.SATS,
        is_profit=pl > 0,
    )


def deposit_to_investment(deposit: Payload) -> Investment:
    return Investment(
        id=f"lnm_deposit_{deposit['id']}",
        original_id=str(deposit["id"]),
        date=_payload_day(deposit["created_at"]),
        amount=deposit["amount"],
        unit=CurrencyUnit.SATS,
    )


def withdrawal_to_record(withdrawal: Payload) -> WithdrawalRecord:
    is_lightning = withdrawal.get("withdrawal_type") == "ln" or withdrawal.get("type") == "lightning"
    return WithdrawalRecord(
        id=f"lnm_withdrawal_{withdrawal['id']}",
        original_id=str(withdrawal["id"]),
        date=_payload_day(withdrawal["created_at"]),
        amount=withdrawal["amount"],
        unit=CurrencyUnit.SATS,
        fee=withdrawal.get("fees") or withdrawal.get("fee") or 0,
        type=WithdrawalType.LIGHTNING if is_lightning else WithdrawalType.ONCHAIN,
        txid=withdrawal.get("txid"),
    )


__all__ = ["trade_to_profit", "deposit_to_investment", "withdrawal_to_record"]
