import pytest

from editionvault.errors import AlreadyStaked
from editionvault.identity import Address
from editionvault.staking import StakeLedger, StakeRecord

ALICE = Address.from_int(0xA11CE)
BOB = Address.from_int(0xB0B)
T0 = 1_704_067_200


def test_create_and_read_back():
    ledger = StakeLedger()
    ledger.create(7, ALICE, T0)

    assert ledger.is_staked(7)
    assert ledger.get(7) == StakeRecord(ALICE, T0)
    assert ledger.timestamp(7) == T0
    assert ledger.word(7) == StakeRecord(ALICE, T0).pack()


def test_absent_unit_has_empty_word():
    ledger = StakeLedger()
    assert ledger.word(1) == 0
    assert ledger.get(1) is None
    assert ledger.timestamp(1) == 0


def test_double_create_rejected():
    ledger = StakeLedger()
    ledger.create(7, ALICE, T0)
    with pytest.raises(AlreadyStaked):
        ledger.create(7, BOB, T0 + 1)
    assert ledger.get(7).custodian == ALICE


def test_reset_clock_keeps_custodian():
    ledger = StakeLedger()
    ledger.create(7, ALICE, T0)
    ledger.reset_clock(7, T0 + 500)
    assert ledger.get(7) == StakeRecord(ALICE, T0 + 500)


def test_clear_removes_record_entirely():
    ledger = StakeLedger()
    ledger.create(7, ALICE, T0)
    assert ledger.clear(7) == StakeRecord(ALICE, T0)
    assert not ledger.is_staked(7)
    assert len(ledger) == 0
    ledger.create(7, BOB, T0 + 10)


def test_items_sorted_by_unit():
    ledger = StakeLedger()
    ledger.create(9, ALICE, T0)
    ledger.create(3, BOB, T0)
    assert [unit for unit, _ in ledger.items()] == [3, 9]


def test_mutating_absent_unit_raises_key_error():
    ledger = StakeLedger()
    with pytest.raises(KeyError):
        ledger.reset_clock(1, T0)
    with pytest.raises(KeyError):
        ledger.clear(1)
