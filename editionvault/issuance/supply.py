"""Bounded issuance counter."""

from __future__ import annotations

from typing import Any

from editionvault.errors import SupplyExhausted


class SupplyCounter:
    """
    Assigns unit identifiers from ``cap`` down to 1.

    The descending order is relied on by indexers that map identifier to
    issuance order, so it must not change.

    Invariants:
    - 0 <= remaining <= cap
    - issued + remaining == cap
    """

    def __init__(self, cap: int = 1000) -> None:
        if cap <= 0:
            raise ValueError("cap must be positive")
        self.cap = cap
        self._remaining = cap

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def issued(self) -> int:
        return self.cap - self._remaining

    def has_remaining(self) -> bool:
        return self._remaining > 0

    def next(self) -> int:
        """Return the next identifier and consume it."""
        if self._remaining == 0:
            raise SupplyExhausted(cap=self.cap)
        unit_id = self._remaining
        self._remaining -= 1
        return unit_id

    def snapshot(self) -> Any:
        return self._remaining

    def restore(self, snapshot: Any) -> None:
        self._remaining = snapshot
