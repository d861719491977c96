"""
Vault Hooks - Observer interface for ledger events.

Events are buffered by the runtime while an operation runs and published
only after it commits, so subscribers (indexers, logging) never see effects
of an operation that was rolled back.

Design Principles:
- Hooks are optional
- Hook exceptions are caught and logged, never propagate
- Hooks receive immutable event data
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Union

from .identity import Address

logger = logging.getLogger(__name__)


# =============================================================================
# Event Dataclasses
# =============================================================================

@dataclass(frozen=True)
class StakedEvent:
    """A unit entered custody."""

    custodian: Address
    unit_id: int


@dataclass(frozen=True)
class UnstakedEvent:
    """A unit left custody and its record was cleared."""

    custodian: Address
    unit_id: int


@dataclass(frozen=True)
class UnitTransferredEvent:
    """Ownership of a unit changed; ``source`` is null for issuance."""

    source: Address
    destination: Address
    unit_id: int


@dataclass(frozen=True)
class RewardMintedEvent:
    recipient: Address
    amount: int


@dataclass(frozen=True)
class OwnershipTransferStartedEvent:
    previous_owner: Address
    pending_owner: Address


@dataclass(frozen=True)
class OwnershipTransferredEvent:
    previous_owner: Address
    new_owner: Address


VaultEvent = Union[
    StakedEvent,
    UnstakedEvent,
    UnitTransferredEvent,
    RewardMintedEvent,
    OwnershipTransferStartedEvent,
    OwnershipTransferredEvent,
]


# =============================================================================
# Hooks Protocol
# =============================================================================

class VaultHooks(Protocol):
    """
    Protocol for event subscribers.

    Called synchronously, in emission order, after the operation that
    produced the events has committed.
    """

    def on_event(self, event: VaultEvent) -> None:
        ...


class NullHooks:
    """No-op hooks implementation."""

    def on_event(self, event: VaultEvent) -> None:
        pass


class LoggingHooks:
    """Hooks that log every committed event."""

    def __init__(self, log_level: int = logging.INFO):
        self._level = log_level

    def on_event(self, event: VaultEvent) -> None:
        logger.log(self._level, f"[HOOK] {type(event).__name__}: {event}")


class RecordingHooks:
    """Collects events in memory, e.g. for an off-chain indexer."""

    def __init__(self) -> None:
        self.events: List[VaultEvent] = []

    def on_event(self, event: VaultEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> List[VaultEvent]:
        return [e for e in self.events if isinstance(e, event_type)]
