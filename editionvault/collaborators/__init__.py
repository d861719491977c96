"""In-process collaborators: unit registry, reward token, royalty metadata."""

from .registry import RECEIVER_ACK, UnitReceiver, UnitRegistry
from .reward_token import RewardToken
from .royalty import SUPPORTED_INTERFACES, RoyaltySchedule, supports_interface

__all__ = [
    "RECEIVER_ACK",
    "RewardToken",
    "RoyaltySchedule",
    "SUPPORTED_INTERFACES",
    "UnitReceiver",
    "UnitRegistry",
    "supports_interface",
]
