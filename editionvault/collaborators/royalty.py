"""Static royalty schedule and interface discovery."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Tuple

from editionvault.config import MAX_BASIS_POINTS, RoyaltyConfig
from editionvault.identity import Address

INTERFACE_DISCOVERY = 0x01FFC9A7
UNIT_REGISTRY = 0x80AC58CD
UNIT_METADATA = 0x5B5E139F
ROYALTY_INFO = 0x2A55205A
UNIT_RECEIVER = 0x150B7A02

SUPPORTED_INTERFACES: FrozenSet[int] = frozenset(
    {INTERFACE_DISCOVERY, UNIT_REGISTRY, UNIT_METADATA, ROYALTY_INFO, UNIT_RECEIVER}
)


def supports_interface(interface_id: int) -> bool:
    return interface_id in SUPPORTED_INTERFACES


@dataclass(frozen=True)
class RoyaltySchedule:
    """Fixed percentage (basis points) of every sale, paid to one receiver."""
    receiver: Address
    basis_points: int

    def __post_init__(self) -> None:
        if not (0 <= self.basis_points <= MAX_BASIS_POINTS):
            raise ValueError(f"basis_points must be in [0, {MAX_BASIS_POINTS}]")

    @classmethod
    def from_config(cls, config: RoyaltyConfig) -> "RoyaltySchedule":
        return cls(receiver=config.receiver_address(), basis_points=config.basis_points)

    def royalty_info(self, unit_id: int, sale_price: int) -> Tuple[Address, int]:
        """(receiver, amount) for a sale; the same schedule applies to every unit."""
        if sale_price < 0:
            raise ValueError("sale_price must be non-negative")
        return self.receiver, sale_price * self.basis_points // MAX_BASIS_POINTS
