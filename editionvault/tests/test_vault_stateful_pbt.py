"""Model-based test of the vault: random operation sequences against a plain model."""

from __future__ import annotations

from typing import Dict, Tuple

import pytest
from hypothesis import HealthCheck, settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, precondition, rule

from conftest import BASE_PRICE, DAY, DISCOUNT_PRICE, RATE, make_deployment
from editionvault.errors import AlreadyClaimed, NoReward, NotCustodian, SupplyExhausted
from editionvault.identity import Address

CAP = 12


class VaultMachine(RuleBasedStateMachine):
    def __init__(self) -> None:
        super().__init__()
        self.d = make_deployment(cap=CAP)
        self.users = self.d.allowlisted[:3]
        self.issued = 0
        self.claimed: set = set()
        self.held: Dict[int, Address] = {}
        self.staked: Dict[int, Tuple[Address, int]] = {}
        self.rewards: Dict[Address, int] = {}

    def _accrued(self, unit_id: int) -> int:
        since = self.staked[unit_id][1]
        return (self.d.clock.now() - since) // DAY * RATE

    def _credit(self, who: Address, amount: int) -> None:
        self.rewards[who] = self.rewards.get(who, 0) + amount

    # -------------------------------------------------------------------------
    # Issuance
    # -------------------------------------------------------------------------

    @rule(user=st.integers(0, 2))
    def mint(self, user: int) -> None:
        who = self.users[user]
        if self.issued == CAP:
            with pytest.raises(SupplyExhausted):
                self.d.vault.mint(who, who, BASE_PRICE)
            return
        unit_id = self.d.vault.mint(who, who, BASE_PRICE)
        assert unit_id == CAP - self.issued
        self.issued += 1
        self.held[unit_id] = who

    @precondition(lambda self: self.issued < CAP)
    @rule(user=st.integers(0, 2))
    def mint_discounted(self, user: int) -> None:
        who = self.users[user]
        proof = self.d.proofs[who]
        if who in self.claimed:
            with pytest.raises(AlreadyClaimed):
                self.d.vault.mint_discounted(who, who, proof, DISCOUNT_PRICE)
            return
        unit_id = self.d.vault.mint_discounted(who, who, proof, DISCOUNT_PRICE)
        self.claimed.add(who)
        self.issued += 1
        self.held[unit_id] = who

    # -------------------------------------------------------------------------
    # Custody
    # -------------------------------------------------------------------------

    @rule(seconds=st.integers(0, 3 * DAY))
    def advance(self, seconds: int) -> None:
        self.d.clock.advance(seconds)

    @precondition(lambda self: self.held)
    @rule(data=st.data(), via_receiver=st.booleans())
    def stake(self, data, via_receiver: bool) -> None:
        unit_id = data.draw(st.sampled_from(sorted(self.held)))
        who = self.held.pop(unit_id)
        if via_receiver:
            self.d.vault.registry.safe_transfer_from(who, who, self.d.vault.address, unit_id)
        else:
            self.d.vault.stake(who, unit_id)
        self.staked[unit_id] = (who, self.d.clock.now())

    @precondition(lambda self: self.staked)
    @rule(data=st.data())
    def withdraw_reward(self, data) -> None:
        unit_id = data.draw(st.sampled_from(sorted(self.staked)))
        who = self.staked[unit_id][0]
        expected = self._accrued(unit_id)
        if expected < RATE:
            with pytest.raises(NoReward):
                self.d.vault.withdraw_reward(who, unit_id)
            return
        assert self.d.vault.withdraw_reward(who, unit_id) == expected
        self.staked[unit_id] = (who, self.d.clock.now())
        self._credit(who, expected)

    @precondition(lambda self: self.staked)
    @rule(data=st.data())
    def withdraw_unit(self, data) -> None:
        unit_id = data.draw(st.sampled_from(sorted(self.staked)))
        who = self.staked[unit_id][0]
        expected = self._accrued(unit_id)
        assert self.d.vault.withdraw_unit(who, unit_id) == expected
        del self.staked[unit_id]
        self.held[unit_id] = who
        self._credit(who, expected)

    @precondition(lambda self: self.staked)
    @rule(data=st.data())
    def stranger_cannot_settle(self, data) -> None:
        unit_id = data.draw(st.sampled_from(sorted(self.staked)))
        with pytest.raises(NotCustodian):
            self.d.vault.withdraw_unit(self.d.outsider, unit_id)

    # -------------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------------

    @invariant()
    def supply_accounting(self) -> None:
        assert self.d.vault.remaining_supply == CAP - self.issued
        assert self.d.vault.registry.total_issued() == self.issued

    @invariant()
    def custody_matches_registry(self) -> None:
        vault = self.d.vault
        for unit_id, (who, since) in self.staked.items():
            assert vault.registry.owner_of(unit_id) == vault.address
            record = vault.stake_record(unit_id)
            assert record.custodian == who
            assert record.timestamp == since
        for unit_id, who in self.held.items():
            assert vault.registry.owner_of(unit_id) == who
            assert vault.stake_record(unit_id) is None
        assert vault.staked_units() == sorted(self.staked)

    @invariant()
    def rewards_match_model(self) -> None:
        token = self.d.vault.reward_token
        for who in self.users:
            assert token.balance_of(who) == self.rewards.get(who, 0)
        assert token.total_supply == sum(self.rewards.values())
        for unit_id in self.staked:
            assert self.d.vault.check_reward(unit_id) == self._accrued(unit_id)

    @invariant()
    def claims_are_sticky(self) -> None:
        for who in self.claimed:
            assert self.d.vault.has_claimed(who)


VaultMachine.TestCase.settings = settings(
    max_examples=25,
    stateful_step_count=25,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
TestVaultMachine = VaultMachine.TestCase
