"""
Identities: 160-bit addresses and the Ed25519 accounts that own them.

Addresses are derived from public keys so an identity cannot be claimed
without its key. Component addresses (the vault, the registry) are derived
from a fixed label instead, since nothing signs on their behalf.

Security:
- Private keys never leave the Account object
- Address derivation is a one-way hash of the public key
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

ADDRESS_BYTES = 20
ADDRESS_BITS = ADDRESS_BYTES * 8


@dataclass(frozen=True, order=True)
class Address:
    """
    A 160-bit identity.

    Invariants:
    - raw is exactly 20 bytes
    """
    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, bytes):
            raise TypeError(f"address must be bytes, got {type(self.raw).__name__}")
        if len(self.raw) != ADDRESS_BYTES:
            raise ValueError(f"address must be {ADDRESS_BYTES} bytes, got {len(self.raw)}")

    @classmethod
    def from_hex(cls, value: str) -> "Address":
        text = value[2:] if value.startswith(("0x", "0X")) else value
        if len(text) != ADDRESS_BYTES * 2:
            raise ValueError(f"address hex must be {ADDRESS_BYTES * 2} chars, got {len(text)}")
        return cls(bytes.fromhex(text))

    @classmethod
    def from_int(cls, value: int) -> "Address":
        if not 0 <= value < (1 << ADDRESS_BITS):
            raise ValueError("address integer out of range")
        return cls(value.to_bytes(ADDRESS_BYTES, "big"))

    @classmethod
    def derive(cls, label: str) -> "Address":
        """Deterministic address for a component that holds no key."""
        digest = hashlib.sha256(b"EDITIONVAULT_COMPONENT_V1\x00" + label.encode("utf-8")).digest()
        return cls(digest[-ADDRESS_BYTES:])

    def to_int(self) -> int:
        return int.from_bytes(self.raw, "big")

    def to_hex(self) -> str:
        return "0x" + self.raw.hex()

    @property
    def is_null(self) -> bool:
        return self.raw == NULL_ADDRESS.raw

    def __str__(self) -> str:
        return self.to_hex()

    def __repr__(self) -> str:
        return f"Address({self.to_hex()})"


NULL_ADDRESS = Address(bytes(ADDRESS_BYTES))


def address_from_public_key(public_key: bytes) -> Address:
    """Address of an Ed25519 public key: the last 20 bytes of its SHA-256."""
    if len(public_key) != 32:
        raise ValueError(f"Ed25519 public key must be 32 bytes, got {len(public_key)}")
    return Address(hashlib.sha256(public_key).digest()[-ADDRESS_BYTES:])


class Account:
    """An Ed25519 keypair and the address it controls."""

    def __init__(self, private_key: ed25519.Ed25519PrivateKey) -> None:
        self._private_key = private_key
        self.public_key = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self.address = address_from_public_key(self.public_key)

    @classmethod
    def generate(cls) -> "Account":
        return cls(ed25519.Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> "Account":
        """Deterministic account from a 32-byte seed (fixtures, tooling)."""
        if len(seed) != 32:
            raise ValueError(f"seed must be 32 bytes, got {len(seed)}")
        return cls(ed25519.Ed25519PrivateKey.from_private_bytes(seed))

    def __repr__(self) -> str:
        return f"Account({self.address.to_hex()})"
