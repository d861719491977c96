import pytest

from editionvault.collaborators import RewardToken
from editionvault.errors import InsufficientBalance, NotOwner
from editionvault.hooks import OwnershipTransferredEvent, OwnershipTransferStartedEvent, RewardMintedEvent
from editionvault.identity import NULL_ADDRESS, Address
from editionvault.runtime import Runtime

DEPLOYER = Address.from_int(0xD3)
VAULT = Address.derive("test-vault")
ALICE = Address.from_int(0xA11CE)
BOB = Address.from_int(0xB0B)


@pytest.fixture
def token(runtime: Runtime) -> RewardToken:
    return RewardToken(runtime, owner=DEPLOYER)


def test_owner_mints(token: RewardToken, runtime: Runtime):
    token.mint(DEPLOYER, ALICE, 30)
    assert token.balance_of(ALICE) == 30
    assert token.total_supply == 30
    assert runtime.events[-1] == RewardMintedEvent(ALICE, 30)


def test_non_owner_cannot_mint(token: RewardToken):
    with pytest.raises(NotOwner):
        token.mint(ALICE, ALICE, 30)


def test_two_step_ownership(token: RewardToken, runtime: Runtime):
    token.transfer_ownership(DEPLOYER, VAULT)
    # Not effective until accepted
    assert token.owner == DEPLOYER
    assert token.pending_owner == VAULT

    with pytest.raises(NotOwner):
        token.accept_ownership(ALICE)

    token.accept_ownership(VAULT)
    assert token.owner == VAULT
    assert token.pending_owner == NULL_ADDRESS
    assert list(runtime.events)[-2:] == [
        OwnershipTransferStartedEvent(DEPLOYER, VAULT),
        OwnershipTransferredEvent(DEPLOYER, VAULT),
    ]
    with pytest.raises(NotOwner):
        token.mint(DEPLOYER, ALICE, 1)


def test_accept_without_pending_owner_fails(token: RewardToken):
    with pytest.raises(NotOwner):
        token.accept_ownership(DEPLOYER)


def test_transfer_and_burn(token: RewardToken):
    token.mint(DEPLOYER, ALICE, 50)
    token.transfer(ALICE, BOB, 20)
    token.burn(BOB, 5)
    assert token.balance_of(ALICE) == 30
    assert token.balance_of(BOB) == 15
    assert token.total_supply == 45
    with pytest.raises(InsufficientBalance):
        token.transfer(BOB, ALICE, 16)


def test_allowance_flow(token: RewardToken):
    token.mint(DEPLOYER, ALICE, 50)
    token.approve(ALICE, BOB, 25)
    token.transfer_from(BOB, ALICE, BOB, 20)
    assert token.allowance(ALICE, BOB) == 5
    with pytest.raises(InsufficientBalance, match="allowance"):
        token.transfer_from(BOB, ALICE, BOB, 6)
    assert token.balance_of(BOB) == 20
