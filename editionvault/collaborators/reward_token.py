"""
Reward Token - Fungible balance ledger that pays out staking rewards.

Only the owner may mint. Ownership moves in two steps: the current owner
names a pending owner, and the pending owner accepts. The vault becomes the
minter by accepting ownership after the deployer hands it over.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from editionvault.errors import InsufficientBalance, InvalidRecipient, NotOwner
from editionvault.hooks import (
    OwnershipTransferredEvent,
    OwnershipTransferStartedEvent,
    RewardMintedEvent,
)
from editionvault.identity import NULL_ADDRESS, Address
from editionvault.runtime import Runtime, deep_snapshot

logger = logging.getLogger(__name__)


class RewardToken:
    def __init__(
        self,
        runtime: Runtime,
        owner: Address,
        address: Optional[Address] = None,
        name: str = "Edition Reward",
        symbol: str = "EDR",
    ) -> None:
        if owner.is_null:
            raise InvalidRecipient("owner must not be the null identity")
        self._runtime = runtime
        self.address = address or Address.derive(f"reward-token:{symbol}")
        self.name = name
        self.symbol = symbol
        self._owner = owner
        self._pending_owner = NULL_ADDRESS
        self._balances: Dict[Address, int] = {}
        self._allowances: Dict[Tuple[Address, Address], int] = {}
        self._total_supply = 0
        runtime.register(self)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def owner(self) -> Address:
        return self._owner

    @property
    def pending_owner(self) -> Address:
        return self._pending_owner

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: Address) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self._allowances.get((owner, spender), 0)

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def mint(self, caller: Address, to: Address, amount: int) -> None:
        with self._runtime.transaction("reward_token.mint"):
            self._require_owner(caller)
            if to.is_null:
                raise InvalidRecipient()
            if amount <= 0:
                raise ValueError("amount must be positive")
            self._balances[to] = self._balances.get(to, 0) + amount
            self._total_supply += amount
            self._runtime.emit(RewardMintedEvent(to, amount))

    def transfer(self, caller: Address, to: Address, amount: int) -> None:
        with self._runtime.transaction("reward_token.transfer"):
            self._move(caller, to, amount)

    def approve(self, caller: Address, spender: Address, amount: int) -> None:
        with self._runtime.transaction("reward_token.approve"):
            if spender.is_null:
                raise InvalidRecipient()
            if amount < 0:
                raise ValueError("amount must be non-negative")
            self._allowances[(caller, spender)] = amount

    def transfer_from(self, caller: Address, source: Address, to: Address, amount: int) -> None:
        with self._runtime.transaction("reward_token.transfer_from"):
            allowed = self.allowance(source, caller)
            if allowed < amount:
                raise InsufficientBalance("allowance too low", allowed=allowed, amount=amount)
            self._allowances[(source, caller)] = allowed - amount
            self._move(source, to, amount)

    def burn(self, caller: Address, amount: int) -> None:
        with self._runtime.transaction("reward_token.burn"):
            balance = self.balance_of(caller)
            if amount < 0 or balance < amount:
                raise InsufficientBalance(balance=balance, amount=amount)
            self._balances[caller] = balance - amount
            self._total_supply -= amount

    def _move(self, source: Address, to: Address, amount: int) -> None:
        if to.is_null:
            raise InvalidRecipient()
        balance = self.balance_of(source)
        if amount < 0 or balance < amount:
            raise InsufficientBalance(balance=balance, amount=amount)
        self._balances[source] = balance - amount
        self._balances[to] = self._balances.get(to, 0) + amount

    # -------------------------------------------------------------------------
    # Two-step ownership
    # -------------------------------------------------------------------------

    def transfer_ownership(self, caller: Address, new_owner: Address) -> None:
        """Start handing ownership to ``new_owner``; takes effect on acceptance."""
        with self._runtime.transaction("reward_token.transfer_ownership"):
            self._require_owner(caller)
            self._pending_owner = new_owner
            self._runtime.emit(OwnershipTransferStartedEvent(self._owner, new_owner))

    def accept_ownership(self, caller: Address) -> None:
        with self._runtime.transaction("reward_token.accept_ownership"):
            if self._pending_owner.is_null or caller != self._pending_owner:
                raise NotOwner("caller is not the pending owner", caller=caller.to_hex())
            previous = self._owner
            self._owner = caller
            self._pending_owner = NULL_ADDRESS
            self._runtime.emit(OwnershipTransferredEvent(previous, caller))
            logger.info(
                f"{self.symbol} ownership transferred",
                extra={"context": {"previous": previous, "owner": caller}},
            )

    def _require_owner(self, caller: Address) -> None:
        if caller != self._owner:
            raise NotOwner(caller=caller.to_hex())

    # -------------------------------------------------------------------------
    # Runtime participation
    # -------------------------------------------------------------------------

    def snapshot(self) -> Any:
        return deep_snapshot(
            (self._owner, self._pending_owner, self._balances, self._allowances, self._total_supply)
        )

    def restore(self, snapshot: Any) -> None:
        (
            self._owner,
            self._pending_owner,
            self._balances,
            self._allowances,
            self._total_supply,
        ) = snapshot
