"""Merkle tree over allowlisted identities.

Leaves are ``sha256(address bytes)``. Interior nodes hash the canonically
ordered pair of their children, so a proof is just the list of sibling
digests; no left/right flags are needed to verify it.
"""

from __future__ import annotations

import hashlib
from typing import Dict, Iterable, List, Sequence, Tuple

from editionvault.identity import Address

DIGEST_SIZE = 32


def hash_leaf(identity: Address) -> bytes:
    """Leaf digest, derived from the identity alone."""
    return hashlib.sha256(identity.raw).digest()


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Hash two digests in canonical (ascending) order."""
    if a <= b:
        return hashlib.sha256(a + b).digest()
    return hashlib.sha256(b + a).digest()


def process_proof(leaf: bytes, proof: Sequence[bytes]) -> bytes:
    """Recompute the root implied by ``leaf`` and its sibling path."""
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling)
    return computed


class AllowlistTreeBuilder:
    """Builds the allowlist commitment and a proof for every member."""

    def __init__(self, identities: Iterable[Address] = ()):
        self._members: Dict[bytes, Address] = {}
        for identity in identities:
            self.add(identity)

    def add(self, identity: Address) -> None:
        """Add a member; duplicates are ignored."""
        self._members[hash_leaf(identity)] = identity

    def __len__(self) -> int:
        return len(self._members)

    def build(self) -> Tuple[bytes, Dict[Address, List[bytes]]]:
        """Build the tree and return (root, proofs).

        Returns:
            Tuple of (root, proofs) where proofs maps each member to its
            list of sibling digests, leaf level first.
        """
        if not self._members:
            raise ValueError("allowlist must contain at least one identity")

        # Sort leaves by digest so the root does not depend on insertion order
        leaves = sorted(self._members)
        proofs: Dict[Address, List[bytes]] = {self._members[leaf]: [] for leaf in leaves}

        level = leaves
        # Which members sit under each node of the current level
        level_members: List[List[Address]] = [[self._members[leaf]] for leaf in leaves]

        while len(level) > 1:
            next_level: List[bytes] = []
            next_members: List[List[Address]] = []

            for i in range(0, len(level), 2):
                left = level[i]
                # Odd node is paired with itself
                right = level[i + 1] if i + 1 < len(level) else level[i]
                members_left = level_members[i]
                members_right = level_members[i + 1] if i + 1 < len(level) else []

                for member in members_left:
                    proofs[member].append(right)
                for member in members_right:
                    proofs[member].append(left)

                next_level.append(hash_pair(left, right))
                next_members.append(members_left + members_right)

            level = next_level
            level_members = next_members

        return level[0], proofs
