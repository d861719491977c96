"""Custody: packed stake records, reward accrual and settlement."""

from .ledger import StakeLedger
from .records import TIMESTAMP_BITS, WORD_BITS, StakeRecord, timestamp_of
from .rewards import RewardCalculator
from .settlement import SettlementEngine

__all__ = [
    "RewardCalculator",
    "SettlementEngine",
    "StakeLedger",
    "StakeRecord",
    "TIMESTAMP_BITS",
    "WORD_BITS",
    "timestamp_of",
]
