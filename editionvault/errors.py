"""Typed failures for vault operations.

Every failure aborts the enclosing operation; the runtime restores all state
touched before the error was raised. Each error carries a stable ``code`` so
callers and logs can match on it without parsing messages.
"""

from __future__ import annotations

from typing import Any, Dict


class VaultError(Exception):
    """Base class for all vault failures."""

    code = "vault_error"
    default_message = "operation failed"

    def __init__(self, message: str | None = None, **context: Any) -> None:
        super().__init__(message or self.default_message)
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self), "context": dict(self.context)}


# -----------------------------------------------------------------------------
# Issuance
# -----------------------------------------------------------------------------

class InvalidRecipient(VaultError):
    code = "invalid_recipient"
    default_message = "recipient is the null identity"


class SupplyExhausted(VaultError):
    code = "supply_exhausted"
    default_message = "no units remaining"


class InsufficientPayment(VaultError):
    code = "insufficient_payment"
    default_message = "payment below required price"


# -----------------------------------------------------------------------------
# Allowlist
# -----------------------------------------------------------------------------

class ProofParamsInvalid(VaultError):
    code = "proof_params_invalid"
    default_message = "membership proof is malformed"


class ProofInvalid(VaultError):
    code = "proof_invalid"
    default_message = "membership proof does not match commitment"


class AlreadyClaimed(VaultError):
    code = "already_claimed"
    default_message = "discount already claimed by this identity"


# -----------------------------------------------------------------------------
# Custody
# -----------------------------------------------------------------------------

class AlreadyStaked(VaultError):
    code = "already_staked"
    default_message = "unit is already in custody"


class NotCustodian(VaultError):
    code = "not_custodian"
    default_message = "caller is not the custodian of this unit"


class NoReward(VaultError):
    code = "no_reward"
    default_message = "less than one day of reward accrued"


class PackedFieldOverflow(VaultError, ValueError):
    code = "packed_field_overflow"
    default_message = "value does not fit its packed field"


# -----------------------------------------------------------------------------
# Collaborators and administration
# -----------------------------------------------------------------------------

class NotOwner(VaultError):
    code = "not_owner"
    default_message = "caller is not the owner"


class NotAuthorized(VaultError):
    code = "not_authorized"
    default_message = "caller is not authorized for this unit"


class NotUnitOwner(VaultError):
    code = "not_unit_owner"
    default_message = "source does not own this unit"


class UnitNotFound(VaultError):
    code = "unit_not_found"
    default_message = "unit does not exist"


class UnitAlreadyExists(VaultError):
    code = "unit_already_exists"
    default_message = "unit has already been issued"


class ReceiverRejected(VaultError):
    code = "receiver_rejected"
    default_message = "receiver did not acknowledge the transfer"


class InsufficientBalance(VaultError):
    code = "insufficient_balance"
    default_message = "balance too low"
