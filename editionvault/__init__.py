"""
editionvault - Capped edition issuance with a discount allowlist and a
reward-bearing custody vault.

Modules:
- allowlist: Merkle commitment, membership proofs, one-time claim bitmap
- issuance: supply counter and purchase gate
- staking: packed stake records, day-stepped reward accrual, settlement
- collaborators: unit registry, reward token, royalty metadata
- vault: the coordinating component
- runtime: serialised, all-or-nothing execution and the clock
"""

from .config import VaultConfig
from .errors import VaultError
from .hooks import LoggingHooks, RecordingHooks, StakedEvent, UnstakedEvent, VaultHooks
from .identity import NULL_ADDRESS, Account, Address
from .runtime import ManualClock, Runtime, SystemClock
from .vault import EditionVault, deploy

__all__ = [
    "Account",
    "Address",
    "EditionVault",
    "LoggingHooks",
    "ManualClock",
    "NULL_ADDRESS",
    "RecordingHooks",
    "Runtime",
    "StakedEvent",
    "SystemClock",
    "UnstakedEvent",
    "VaultConfig",
    "VaultError",
    "VaultHooks",
    "deploy",
]

__version__ = "0.1.0"
