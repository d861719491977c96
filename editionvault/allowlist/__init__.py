"""Discount allowlist: Merkle commitment, membership proofs, claim bitmap."""

from .claims import WORD_WIDTH, ClaimBitmap, bit_position
from .merkle_tree import AllowlistTreeBuilder, hash_leaf, hash_pair, process_proof
from .verifier import AllowlistVerifier

__all__ = [
    "AllowlistTreeBuilder",
    "AllowlistVerifier",
    "ClaimBitmap",
    "WORD_WIDTH",
    "bit_position",
    "hash_leaf",
    "hash_pair",
    "process_proof",
]
