"""Issuance: supply cap and purchase validation."""

from .mint_gate import MintGate
from .supply import SupplyCounter

__all__ = ["MintGate", "SupplyCounter"]
