"""
Unit Registry - Ownership ledger for the capped collection.

Minimal, interface-faithful ownership bookkeeping: owners, per-unit
approvals, operator approvals, plain and receiver-notifying transfers, and
minter-only issuance. Every public mutation runs as a runtime transaction,
so a receive callback that fails undoes the transfer that triggered it.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol, Set, Tuple

from editionvault.errors import (
    InvalidRecipient,
    NotAuthorized,
    NotUnitOwner,
    ReceiverRejected,
    UnitAlreadyExists,
    UnitNotFound,
)
from editionvault.hooks import UnitTransferredEvent
from editionvault.identity import NULL_ADDRESS, Address
from editionvault.runtime import Runtime, deep_snapshot

# Acknowledgement a receiver must return from on_unit_received
RECEIVER_ACK = bytes.fromhex("150b7a02")


class UnitReceiver(Protocol):
    """A component that accepts units via safe_transfer_from."""

    def on_unit_received(
        self,
        caller: Address,
        operator: Address,
        source: Address,
        unit_id: int,
        data: bytes,
    ) -> bytes:
        ...


class UnitRegistry:
    def __init__(self, runtime: Runtime, address: Address, minter: Address) -> None:
        self._runtime = runtime
        self.address = address
        self.minter = minter
        self._owners: Dict[int, Address] = {}
        self._balances: Dict[Address, int] = {}
        self._approvals: Dict[int, Address] = {}
        self._operators: Set[Tuple[Address, Address]] = set()
        self._receivers: Dict[Address, UnitReceiver] = {}
        runtime.register(self)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def exists(self, unit_id: int) -> bool:
        return unit_id in self._owners

    def owner_of(self, unit_id: int) -> Address:
        owner = self._owners.get(unit_id)
        if owner is None:
            raise UnitNotFound(unit_id=unit_id)
        return owner

    def balance_of(self, owner: Address) -> int:
        if owner.is_null:
            raise InvalidRecipient("null identity has no balance")
        return self._balances.get(owner, 0)

    def get_approved(self, unit_id: int) -> Address:
        self.owner_of(unit_id)
        return self._approvals.get(unit_id, NULL_ADDRESS)

    def is_approved_for_all(self, owner: Address, operator: Address) -> bool:
        return (owner, operator) in self._operators

    def total_issued(self) -> int:
        return len(self._owners)

    # -------------------------------------------------------------------------
    # Approvals
    # -------------------------------------------------------------------------

    def approve(self, caller: Address, approved: Address, unit_id: int) -> None:
        with self._runtime.transaction("registry.approve"):
            owner = self.owner_of(unit_id)
            if caller != owner and not self.is_approved_for_all(owner, caller):
                raise NotAuthorized(caller=caller.to_hex(), unit_id=unit_id)
            if approved.is_null:
                self._approvals.pop(unit_id, None)
            else:
                self._approvals[unit_id] = approved

    def set_approval_for_all(self, caller: Address, operator: Address, approved: bool) -> None:
        with self._runtime.transaction("registry.set_approval_for_all"):
            if operator == caller:
                raise NotAuthorized("cannot approve self as operator")
            if approved:
                self._operators.add((caller, operator))
            else:
                self._operators.discard((caller, operator))

    # -------------------------------------------------------------------------
    # Transfers
    # -------------------------------------------------------------------------

    def transfer_from(self, caller: Address, source: Address, destination: Address, unit_id: int) -> None:
        with self._runtime.transaction("registry.transfer_from"):
            self._transfer(caller, source, destination, unit_id)

    def safe_transfer_from(
        self,
        caller: Address,
        source: Address,
        destination: Address,
        unit_id: int,
        data: bytes = b"",
    ) -> None:
        """Transfer, then require a registered receiver to acknowledge it."""
        with self._runtime.transaction("registry.safe_transfer_from"):
            self._transfer(caller, source, destination, unit_id)
            receiver = self._receivers.get(destination)
            if receiver is not None:
                ack = receiver.on_unit_received(self.address, caller, source, unit_id, data)
                if ack != RECEIVER_ACK:
                    raise ReceiverRejected(destination=destination.to_hex(), unit_id=unit_id)

    def issue(self, caller: Address, to: Address, unit_id: int) -> None:
        with self._runtime.transaction("registry.issue"):
            if caller != self.minter:
                raise NotAuthorized("only the minter may issue units", caller=caller.to_hex())
            if to.is_null:
                raise InvalidRecipient()
            if unit_id in self._owners:
                raise UnitAlreadyExists(unit_id=unit_id)
            self._owners[unit_id] = to
            self._balances[to] = self._balances.get(to, 0) + 1
            self._runtime.emit(UnitTransferredEvent(NULL_ADDRESS, to, unit_id))

    def register_receiver(self, address: Address, receiver: UnitReceiver) -> None:
        """Mark ``address`` as a component that must acknowledge safe transfers."""
        self._receivers[address] = receiver

    def _is_approved_or_owner(self, spender: Address, owner: Address, unit_id: int) -> bool:
        return (
            spender == owner
            or self._approvals.get(unit_id) == spender
            or self.is_approved_for_all(owner, spender)
        )

    def _transfer(self, caller: Address, source: Address, destination: Address, unit_id: int) -> None:
        owner = self.owner_of(unit_id)
        if not self._is_approved_or_owner(caller, owner, unit_id):
            raise NotAuthorized(caller=caller.to_hex(), unit_id=unit_id)
        if owner != source:
            raise NotUnitOwner(source=source.to_hex(), unit_id=unit_id)
        if destination.is_null:
            raise InvalidRecipient()

        self._approvals.pop(unit_id, None)
        self._balances[source] -= 1
        self._balances[destination] = self._balances.get(destination, 0) + 1
        self._owners[unit_id] = destination
        self._runtime.emit(UnitTransferredEvent(source, destination, unit_id))

    # -------------------------------------------------------------------------
    # Runtime participation
    # -------------------------------------------------------------------------

    def snapshot(self) -> Any:
        return deep_snapshot((self._owners, self._balances, self._approvals, self._operators))

    def restore(self, snapshot: Any) -> None:
        self._owners, self._balances, self._approvals, self._operators = snapshot
