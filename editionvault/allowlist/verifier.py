"""Membership check against the fixed allowlist commitment."""

from __future__ import annotations

import hmac
import logging
from typing import Sequence

from editionvault.errors import ProofInvalid, ProofParamsInvalid
from editionvault.identity import Address

from .merkle_tree import DIGEST_SIZE, hash_leaf, process_proof

logger = logging.getLogger(__name__)


class AllowlistVerifier:
    """
    Verifies Merkle membership proofs for discount-eligible identities.

    Pure: reads nothing but the commitment fixed at construction.
    """

    def __init__(self, root: bytes) -> None:
        if len(root) != DIGEST_SIZE:
            raise ValueError(f"root must be {DIGEST_SIZE} bytes, got {len(root)}")
        self._root = bytes(root)

    @property
    def root(self) -> bytes:
        return self._root

    def verify(self, identity: Address, proof: Sequence[bytes]) -> None:
        """
        Raise unless ``proof`` proves ``identity`` is in the committed set.

        An empty proof is always rejected, even against a single-leaf
        commitment whose root equals the leaf.

        Raises:
            ProofParamsInvalid: proof is empty or has a malformed element
            ProofInvalid: recomputed root differs from the commitment
        """
        if not proof:
            raise ProofParamsInvalid("membership proof is empty", identity=identity.to_hex())
        for i, element in enumerate(proof):
            if not isinstance(element, (bytes, bytearray)) or len(element) != DIGEST_SIZE:
                raise ProofParamsInvalid(
                    f"proof element {i} must be {DIGEST_SIZE} bytes",
                    identity=identity.to_hex(),
                )

        computed = process_proof(hash_leaf(identity), [bytes(e) for e in proof])
        if not hmac.compare_digest(computed, self._root):
            logger.debug(f"Allowlist proof rejected for {identity}")
            raise ProofInvalid(identity=identity.to_hex())

    def is_member(self, identity: Address, proof: Sequence[bytes]) -> bool:
        try:
            self.verify(identity, proof)
        except (ProofParamsInvalid, ProofInvalid):
            return False
        return True
