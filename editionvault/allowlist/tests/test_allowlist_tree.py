import hashlib
import random

import pytest

from editionvault.allowlist import AllowlistTreeBuilder, hash_leaf, hash_pair, process_proof
from editionvault.identity import Address


def _addresses(n: int) -> list[Address]:
    return [Address.from_int(i + 1) for i in range(n)]


def test_builder_deterministic_root_regardless_of_insertion_order():
    members = _addresses(7)
    shuffled = list(members)
    random.Random(3).shuffle(shuffled)

    root_a, proofs_a = AllowlistTreeBuilder(members).build()
    root_b, proofs_b = AllowlistTreeBuilder(shuffled).build()

    assert root_a == root_b, "Root should be deterministic regardless of insertion order"
    assert proofs_a == proofs_b


@pytest.mark.parametrize("size", [2, 3, 4, 5, 8, 13])
def test_every_member_proof_recomputes_root(size: int):
    members = _addresses(size)
    root, proofs = AllowlistTreeBuilder(members).build()

    for member in members:
        assert process_proof(hash_leaf(member), proofs[member]) == root


def test_duplicates_are_ignored():
    member = Address.from_int(42)
    builder = AllowlistTreeBuilder([member, member])
    assert len(builder) == 1


def test_single_member_tree_has_empty_proof():
    member = Address.from_int(42)
    root, proofs = AllowlistTreeBuilder([member]).build()
    assert root == hash_leaf(member)
    assert proofs[member] == []


def test_empty_allowlist_cannot_be_built():
    with pytest.raises(ValueError, match="at least one"):
        AllowlistTreeBuilder().build()


def test_two_leaf_root_matches_sorted_pair_hash():
    a, b = Address.from_int(1), Address.from_int(2)
    root, _ = AllowlistTreeBuilder([a, b]).build()
    la, lb = sorted([hash_leaf(a), hash_leaf(b)])
    assert root == hashlib.sha256(la + lb).digest()


def test_hash_pair_is_order_independent():
    x = hashlib.sha256(b"x").digest()
    y = hashlib.sha256(b"y").digest()
    assert hash_pair(x, y) == hash_pair(y, x)


def test_leaf_depends_only_on_identity():
    member = Address.from_int(7)
    assert hash_leaf(member) == hashlib.sha256(member.raw).digest()
