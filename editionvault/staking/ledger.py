"""Authoritative map of units in custody to their packed records."""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional, Tuple

from editionvault.errors import AlreadyStaked
from editionvault.identity import Address
from editionvault.runtime import deep_snapshot

from .records import EMPTY_WORD, StakeRecord, timestamp_of


class StakeLedger:
    """
    unit_id -> packed StakeRecord word.

    Invariants:
    - A unit is either absent or has a fully populated record
    - Only create() adds entries, only clear() removes them
    """

    def __init__(self) -> None:
        self._words: Dict[int, int] = {}

    def word(self, unit_id: int) -> int:
        return self._words.get(unit_id, EMPTY_WORD)

    def get(self, unit_id: int) -> Optional[StakeRecord]:
        return StakeRecord.unpack(self.word(unit_id))

    def timestamp(self, unit_id: int) -> int:
        return timestamp_of(self.word(unit_id))

    def is_staked(self, unit_id: int) -> bool:
        return self.word(unit_id) != EMPTY_WORD

    def create(self, unit_id: int, custodian: Address, now: int) -> StakeRecord:
        if self.is_staked(unit_id):
            raise AlreadyStaked(unit_id=unit_id)
        record = StakeRecord(custodian=custodian, timestamp=now)
        self._words[unit_id] = record.pack()
        return record

    def reset_clock(self, unit_id: int, now: int) -> StakeRecord:
        """Rewrite the record with the same custodian and a new timestamp."""
        current = self.get(unit_id)
        if current is None:
            raise KeyError(unit_id)
        record = current.with_timestamp(now)
        self._words[unit_id] = record.pack()
        return record

    def clear(self, unit_id: int) -> StakeRecord:
        record = self.get(unit_id)
        if record is None:
            raise KeyError(unit_id)
        del self._words[unit_id]
        return record

    def items(self) -> Iterator[Tuple[int, StakeRecord]]:
        for unit_id in sorted(self._words):
            record = StakeRecord.unpack(self._words[unit_id])
            if record is not None:
                yield unit_id, record

    def __len__(self) -> int:
        return len(self._words)

    def snapshot(self) -> Any:
        return deep_snapshot(self._words)

    def restore(self, snapshot: Any) -> None:
        self._words = snapshot
