"""
Packed stake records.

A record is (custodian, timestamp) stored as one 256-bit word:

    bits 255..96  custodian address (160 bits)
    bits  95..0   reference timestamp in seconds (96 bits)

The word 0 means "no record". Because of that, neither field may be zero in
a populated record: a null custodian or a zero timestamp would make the
record indistinguishable from (or half of) an absent one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from editionvault.errors import PackedFieldOverflow
from editionvault.identity import ADDRESS_BITS, Address

WORD_BITS = 256
TIMESTAMP_BITS = WORD_BITS - ADDRESS_BITS
TIMESTAMP_MASK = (1 << TIMESTAMP_BITS) - 1
MAX_WORD = (1 << WORD_BITS) - 1
EMPTY_WORD = 0


@dataclass(frozen=True)
class StakeRecord:
    """
    Who holds a unit in custody and since when.

    Invariants:
    - custodian is not the null identity
    - 0 < timestamp < 2**96
    """
    custodian: Address
    timestamp: int

    def __post_init__(self) -> None:
        if self.custodian.is_null:
            raise PackedFieldOverflow("custodian must not be the null identity")
        if not isinstance(self.timestamp, int) or isinstance(self.timestamp, bool):
            raise TypeError(f"timestamp must be int, got {type(self.timestamp).__name__}")
        if not (0 < self.timestamp <= TIMESTAMP_MASK):
            raise PackedFieldOverflow(
                f"timestamp must be in (0, 2**{TIMESTAMP_BITS})",
                timestamp=self.timestamp,
            )

    def pack(self) -> int:
        return (self.custodian.to_int() << TIMESTAMP_BITS) | self.timestamp

    @classmethod
    def unpack(cls, word: int) -> Optional["StakeRecord"]:
        """Decode a word; None for the empty word."""
        if not (0 <= word <= MAX_WORD):
            raise PackedFieldOverflow(f"word must fit {WORD_BITS} bits")
        if word == EMPTY_WORD:
            return None
        return cls(
            custodian=Address.from_int(word >> TIMESTAMP_BITS),
            timestamp=word & TIMESTAMP_MASK,
        )

    def with_timestamp(self, timestamp: int) -> "StakeRecord":
        return StakeRecord(custodian=self.custodian, timestamp=timestamp)


def timestamp_of(word: int) -> int:
    """Timestamp field of a packed word; 0 for the empty word."""
    return word & TIMESTAMP_MASK
