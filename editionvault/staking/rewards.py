"""Reward accrual: a step function of whole days since the reference time."""

from __future__ import annotations

from editionvault.config import DAY_SECONDS


class RewardCalculator:
    """
    reward = floor((now - since) / day_seconds) * rate_per_day

    Nothing is stored; the value is derived whenever it is asked for. Less
    than one whole day yields 0 even for an active stake.
    """

    def __init__(self, rate_per_day: int = 10, day_seconds: int = DAY_SECONDS) -> None:
        if rate_per_day <= 0:
            raise ValueError("rate_per_day must be positive")
        if day_seconds <= 0:
            raise ValueError("day_seconds must be positive")
        self.rate_per_day = rate_per_day
        self.day_seconds = day_seconds

    def whole_days(self, since: int, now: int) -> int:
        if since <= 0 or now <= since:
            return 0
        return (now - since) // self.day_seconds

    def accrued(self, since: int, now: int) -> int:
        """Reward for holding from ``since`` to ``now``; 0 when ``since`` is 0 (no record)."""
        return self.whole_days(since, now) * self.rate_per_day

    def meets_threshold(self, amount: int) -> bool:
        """True if ``amount`` is worth a stand-alone reward withdrawal."""
        return amount >= self.rate_per_day
