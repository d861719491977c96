"""
Claim bitmap: which identities have used their one-time discount.

One bit per identity. Identity ``n`` lives in word ``n // 256`` at bit
``n % 256``. Words are stored sparsely (only non-zero words exist), the
layout within a word is dense.

Security invariant: a set bit is never cleared. Clearing one would let the
same allowlist proof be replayed. The only way a bit disappears is the
runtime restoring a snapshot because the operation that set it failed.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from editionvault.errors import AlreadyClaimed
from editionvault.identity import Address
from editionvault.runtime import deep_snapshot

WORD_WIDTH = 256


def bit_position(identity: Address) -> Tuple[int, int]:
    """(word_index, bit_mask) for an identity."""
    n = identity.to_int()
    return n // WORD_WIDTH, 1 << (n % WORD_WIDTH)


class ClaimBitmap:
    def __init__(self) -> None:
        self._words: Dict[int, int] = {}

    def is_claimed(self, identity: Address) -> bool:
        word_index, mask = bit_position(identity)
        return bool(self._words.get(word_index, 0) & mask)

    def try_claim(self, identity: Address) -> None:
        """Set the identity's bit.

        Raises:
            AlreadyClaimed: the bit was already set
        """
        word_index, mask = bit_position(identity)
        word = self._words.get(word_index, 0)
        if word & mask:
            raise AlreadyClaimed(identity=identity.to_hex())
        self._words[word_index] = word | mask

    def word(self, word_index: int) -> int:
        return self._words.get(word_index, 0)

    def claimed_count(self) -> int:
        return sum(bin(word).count("1") for word in self._words.values())

    def snapshot(self) -> Any:
        return deep_snapshot(self._words)

    def restore(self, snapshot: Any) -> None:
        self._words = snapshot
