"""Shared fixtures: a manual clock, a runtime, and a deployed vault."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

import pytest

from editionvault.allowlist import AllowlistTreeBuilder
from editionvault.config import AllowlistConfig, PricingConfig, RewardConfig, RoyaltyConfig, SupplyConfig, VaultConfig
from editionvault.hooks import RecordingHooks
from editionvault.identity import Account, Address
from editionvault.runtime import ManualClock, Runtime
from editionvault.vault import EditionVault, deploy

DAY = 86_400
BASE_PRICE = 1_000
DISCOUNT_PRICE = 600
RATE = 10


def account(n: int) -> Account:
    """Deterministic test account number ``n``."""
    return Account.from_seed(n.to_bytes(32, "big"))


@dataclass
class Deployment:
    clock: ManualClock
    runtime: Runtime
    vault: EditionVault
    hooks: RecordingHooks
    owner: Address
    allowlisted: List[Address]
    outsider: Address
    proofs: Dict[Address, List[bytes]]


def make_config(root: bytes, cap: int = 1000) -> VaultConfig:
    return VaultConfig(
        supply=SupplyConfig(cap=cap),
        pricing=PricingConfig(base_price=BASE_PRICE, discount_price=DISCOUNT_PRICE),
        rewards=RewardConfig(rate_per_day=RATE, day_seconds=DAY),
        allowlist=AllowlistConfig(root="0x" + root.hex()),
        royalty=RoyaltyConfig(receiver=account(99).address.to_hex(), basis_points=500),
    )


def make_deployment(cap: int = 1000) -> Deployment:
    owner = account(1).address
    allowlisted = [account(n).address for n in range(10, 15)]
    root, proofs = AllowlistTreeBuilder(allowlisted).build()

    clock = ManualClock()
    runtime = Runtime(clock=clock)
    hooks = RecordingHooks()
    vault = deploy(runtime, make_config(root, cap=cap), owner=owner, hooks=hooks, configure_logs=False)
    return Deployment(
        clock=clock,
        runtime=runtime,
        vault=vault,
        hooks=hooks,
        owner=owner,
        allowlisted=allowlisted,
        outsider=account(50).address,
        proofs=proofs,
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def runtime(clock: ManualClock) -> Runtime:
    return Runtime(clock=clock)


@pytest.fixture
def deployment() -> Deployment:
    return make_deployment()
