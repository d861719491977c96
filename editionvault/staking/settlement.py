"""
Settlement Engine - Custody deposits, reward payout and unit return.

Operations (all run inside the caller's runtime transaction, at its ``now``):

1. deposit: create a record for a unit that is (or is about to be) held
2. check_reward: derive the accrued reward; never writes
3. withdraw_reward: pay at least one day's reward, reset the clock, keep custody
4. withdraw_unit: pay whatever accrued (possibly nothing), clear, return the unit

State machine per unit:
    Unstaked --deposit--> Staked --withdraw_reward--> Staked (clock reset)
    Staked --withdraw_unit--> Unstaked (record cleared)

The one-day minimum applies only to withdraw_reward. A sub-day reward is not
worth its own withdrawal, but it is paid rather than forfeited when the unit
itself leaves custody.
"""

from __future__ import annotations

import logging
from typing import Protocol

from editionvault.errors import NoReward, NotCustodian
from editionvault.hooks import StakedEvent, UnstakedEvent
from editionvault.identity import Address
from editionvault.runtime import Runtime

from .ledger import StakeLedger
from .records import StakeRecord
from .rewards import RewardCalculator

logger = logging.getLogger(__name__)


class RewardIssuer(Protocol):
    def mint(self, caller: Address, to: Address, amount: int) -> None:
        ...


class CustodyRegistry(Protocol):
    def transfer_from(self, caller: Address, source: Address, destination: Address, unit_id: int) -> None:
        ...


class SettlementEngine:
    def __init__(
        self,
        runtime: Runtime,
        ledger: StakeLedger,
        calculator: RewardCalculator,
        registry: CustodyRegistry,
        issuer: RewardIssuer,
        custody_address: Address,
    ) -> None:
        self._runtime = runtime
        self._ledger = ledger
        self._calculator = calculator
        self._registry = registry
        self._issuer = issuer
        self._custody_address = custody_address

    def deposit(self, unit_id: int, custodian: Address, now: int) -> StakeRecord:
        """Record ``custodian`` as holder of ``unit_id`` from ``now``.

        Raises:
            AlreadyStaked: the unit already has a record
        """
        record = self._ledger.create(unit_id, custodian, now)
        self._runtime.emit(StakedEvent(custodian, unit_id))
        logger.info(
            f"Unit {unit_id} staked",
            extra={"context": {"unit_id": unit_id, "custodian": custodian, "at": now}},
        )
        return record

    def check_reward(self, unit_id: int, now: int) -> int:
        return self._calculator.accrued(self._ledger.timestamp(unit_id), now)

    def withdraw_reward(self, caller: Address, unit_id: int, now: int) -> int:
        """Pay the accrued reward and restart accrual from ``now``.

        Raises:
            NotCustodian: caller is not the recorded custodian
            NoReward: less than one full day has accrued
        """
        record = self._require_custodian(caller, unit_id)
        amount = self._calculator.accrued(record.timestamp, now)
        if not self._calculator.meets_threshold(amount):
            raise NoReward(unit_id=unit_id, accrued=amount)

        self._ledger.reset_clock(unit_id, now)
        self._issuer.mint(self._custody_address, record.custodian, amount)
        logger.info(
            f"Reward {amount} paid for unit {unit_id}",
            extra={"context": {"unit_id": unit_id, "custodian": caller, "amount": amount}},
        )
        return amount

    def withdraw_unit(self, caller: Address, unit_id: int, now: int) -> int:
        """Clear the record, pay any accrued reward, return the unit.

        Raises:
            NotCustodian: caller is not the recorded custodian
        """
        record = self._require_custodian(caller, unit_id)
        amount = self._calculator.accrued(record.timestamp, now)

        self._ledger.clear(unit_id)
        if amount > 0:
            self._issuer.mint(self._custody_address, record.custodian, amount)
        self._registry.transfer_from(self._custody_address, self._custody_address, record.custodian, unit_id)
        self._runtime.emit(UnstakedEvent(record.custodian, unit_id))
        logger.info(
            f"Unit {unit_id} unstaked",
            extra={"context": {"unit_id": unit_id, "custodian": caller, "reward": amount}},
        )
        return amount

    def _require_custodian(self, caller: Address, unit_id: int) -> StakeRecord:
        record = self._ledger.get(unit_id)
        if record is None or record.custodian != caller:
            logger.debug(f"Custody check failed for unit {unit_id} by {caller}")
            raise NotCustodian(unit_id=unit_id, caller=caller.to_hex())
        return record
