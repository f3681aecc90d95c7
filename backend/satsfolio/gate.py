"""Discard results of calculations superseded by a newer request."""
from __future__ import annotations

import itertools
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class LatestResultGate(Generic[T]):
    """Hands out increasing tickets and keeps only the newest ticket's result.

    Calculations are never cancelled; a caller that starts several of them
    issues a ticket for each and offers every result back with its ticket.
    Results for anything but the most recently issued ticket are dropped.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest = 0
        self._result: Optional[T] = None

    def issue(self) -> int:
        self._latest = next(self._counter)
        return self._latest

    @property
    def latest_ticket(self) -> int:
        return self._latest

    def is_current(self, ticket: int) -> bool:
        return self._latest > 0 and ticket == self._latest

    def offer(self, ticket: int, result: T) -> bool:
        """Store ``result`` if ``ticket`` is current; return whether it was kept."""

        if not self.is_current(ticket):
            return False
        self._result = result
        return True

    @property
    def result(self) -> Optional[T]:
        return self._result


__all__ = ["LatestResultGate"]
