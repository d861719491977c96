"""
Edition Vault - Coordinating component for issuance and custody.

Owns every piece of ledger state and is the only way to mutate it:

Issuance path:
1. MintGate (recipient, supply, payment; first failure wins)
2. AllowlistVerifier (discount path only)
3. ClaimBitmap (discount path only; one discount per identity)
4. SupplyCounter assigns the identifier, registry issues the unit

Custody path:
1. Unit enters custody (explicit stake, or safe transfer into the vault)
2. StakeLedger records (custodian, now)
3. SettlementEngine pays rewards and returns units on request

Each public operation is one runtime transaction: it either completes or
leaves no trace, including in the registry and the reward token.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .allowlist import AllowlistVerifier, ClaimBitmap
from .collaborators import RECEIVER_ACK, RewardToken, RoyaltySchedule, UnitRegistry, supports_interface
from .config import VaultConfig
from .errors import NotAuthorized, NotOwner, NotUnitOwner, VaultError
from .hooks import VaultHooks
from .identity import Address
from .issuance import MintGate, SupplyCounter
from .logging import configure_logging
from .runtime import Runtime, deep_snapshot
from .staking import RewardCalculator, SettlementEngine, StakeLedger, StakeRecord

logger = logging.getLogger(__name__)


class EditionVault:
    """
    Capped collection with a discount allowlist and a reward-bearing vault.

    Callers identify themselves with ``caller``; payments arrive as
    ``value`` in the smallest payment unit.
    """

    def __init__(
        self,
        runtime: Runtime,
        config: VaultConfig,
        owner: Address,
        reward_token: RewardToken,
        address: Optional[Address] = None,
    ) -> None:
        if owner.is_null:
            raise ValueError("owner must not be the null identity")
        self._runtime = runtime
        self._config = config
        self.owner = owner
        self.address = address or Address.derive("edition-vault")
        self.reward_token = reward_token

        self.supply = SupplyCounter(config.supply.cap)
        self.gate = MintGate(self.supply)
        self.verifier = AllowlistVerifier(config.allowlist.root_bytes())
        self.claims = ClaimBitmap()
        self.ledger = StakeLedger()
        self.calculator = RewardCalculator(config.rewards.rate_per_day, config.rewards.day_seconds)
        self.royalty = RoyaltySchedule.from_config(config.royalty)

        self.registry = UnitRegistry(runtime, Address.derive("edition-vault:registry"), minter=self.address)
        self.registry.register_receiver(self.address, self)

        self.settlement = SettlementEngine(
            runtime=runtime,
            ledger=self.ledger,
            calculator=self.calculator,
            registry=self.registry,
            issuer=reward_token,
            custody_address=self.address,
        )

        self._proceeds = 0
        self._payouts: Dict[Address, int] = {}

        for participant in (self.supply, self.claims, self.ledger, self):
            runtime.register(participant)

        logger.info(
            f"EditionVault initialized at {self.address}, cap={config.supply.cap}, "
            f"rate_per_day={config.rewards.rate_per_day}"
        )

    @contextmanager
    def _operation(self, label: str) -> Iterator[int]:
        try:
            with self._runtime.transaction(label) as now:
                yield now
        except VaultError as e:
            logger.debug(
                f"{label} rejected: {e.code}",
                extra={"context": {"operation": label, **e.to_dict()}},
            )
            raise

    # -------------------------------------------------------------------------
    # Issuance
    # -------------------------------------------------------------------------

    def mint(self, caller: Address, to: Address, value: int) -> int:
        """Buy one unit at the base price. Returns the new unit identifier."""
        with self._operation("vault.mint"):
            self.gate.validate(to, value, self._config.pricing.base_price)
            return self._issue(caller, to, value)

    def mint_discounted(self, caller: Address, to: Address, proof: Sequence[bytes], value: int) -> int:
        """Buy one unit at the discount price with an allowlist proof for ``caller``.

        Raises:
            InvalidRecipient, SupplyExhausted, InsufficientPayment: gate checks
            ProofParamsInvalid, ProofInvalid: caller is not proven eligible
            AlreadyClaimed: caller already used its discount
        """
        with self._operation("vault.mint_discounted"):
            self.gate.validate(to, value, self._config.pricing.discount_price)
            self.verifier.verify(caller, proof)
            self.claims.try_claim(caller)
            return self._issue(caller, to, value)

    def _issue(self, caller: Address, to: Address, value: int) -> int:
        unit_id = self.supply.next()
        self._proceeds += value
        self.registry.issue(self.address, to, unit_id)
        logger.info(
            f"Unit {unit_id} issued",
            extra={"context": {"unit_id": unit_id, "buyer": caller, "to": to, "paid": value}},
        )
        return unit_id

    # -------------------------------------------------------------------------
    # Custody
    # -------------------------------------------------------------------------

    def stake(self, caller: Address, unit_id: int) -> StakeRecord:
        """Move ``unit_id`` from the caller into custody and start accrual."""
        with self._operation("vault.stake") as now:
            record = self.settlement.deposit(unit_id, caller, now)
            self.registry.transfer_from(caller, caller, self.address, unit_id)
            return record

    def on_unit_received(
        self,
        caller: Address,
        operator: Address,
        source: Address,
        unit_id: int,
        data: bytes,
    ) -> bytes:
        """Receive callback: a unit safely transferred in is staked for its sender."""
        with self._operation("vault.on_unit_received") as now:
            if caller != self.registry.address:
                raise NotAuthorized("units must arrive through the registry", caller=caller.to_hex())
            if self.registry.owner_of(unit_id) != self.address:
                raise NotUnitOwner("unit is not held by the vault", unit_id=unit_id)
            self.settlement.deposit(unit_id, source, now)
        return RECEIVER_ACK

    def check_reward(self, unit_id: int) -> int:
        with self._runtime.view() as now:
            return self.settlement.check_reward(unit_id, now)

    def withdraw_reward(self, caller: Address, unit_id: int) -> int:
        with self._operation("vault.withdraw_reward") as now:
            return self.settlement.withdraw_reward(caller, unit_id, now)

    def withdraw_unit(self, caller: Address, unit_id: int) -> int:
        with self._operation("vault.withdraw_unit") as now:
            return self.settlement.withdraw_unit(caller, unit_id, now)

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    def accept_reward_ownership(self, caller: Address) -> None:
        """Complete the reward token's ownership handover to this vault."""
        with self._operation("vault.accept_reward_ownership"):
            self._require_owner(caller)
            self.reward_token.accept_ownership(self.address)

    def withdraw_proceeds(self, caller: Address) -> int:
        """Pay all collected mint payments to the owner."""
        with self._operation("vault.withdraw_proceeds"):
            self._require_owner(caller)
            amount = self._proceeds
            self._proceeds = 0
            self._payouts[caller] = self._payouts.get(caller, 0) + amount
            logger.info(f"Proceeds {amount} withdrawn", extra={"context": {"owner": caller}})
            return amount

    def _require_owner(self, caller: Address) -> None:
        if caller != self.owner:
            raise NotOwner(caller=caller.to_hex())

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def remaining_supply(self) -> int:
        return self.supply.remaining

    @property
    def proceeds(self) -> int:
        return self._proceeds

    def paid_out(self, account: Address) -> int:
        return self._payouts.get(account, 0)

    def stake_record(self, unit_id: int) -> Optional[StakeRecord]:
        return self.ledger.get(unit_id)

    def staked_units(self, custodian: Optional[Address] = None) -> List[int]:
        return [
            unit_id
            for unit_id, record in self.ledger.items()
            if custodian is None or record.custodian == custodian
        ]

    def has_claimed(self, identity: Address) -> bool:
        return self.claims.is_claimed(identity)

    def royalty_info(self, unit_id: int, sale_price: int) -> Tuple[Address, int]:
        return self.royalty.royalty_info(unit_id, sale_price)

    def supports_interface(self, interface_id: int) -> bool:
        return supports_interface(interface_id)

    # -------------------------------------------------------------------------
    # Runtime participation (vault treasury)
    # -------------------------------------------------------------------------

    def snapshot(self) -> Any:
        return deep_snapshot((self._proceeds, self._payouts))

    def restore(self, snapshot: Any) -> None:
        self._proceeds, self._payouts = snapshot


def deploy(
    runtime: Runtime,
    config: VaultConfig,
    owner: Address,
    hooks: Optional[VaultHooks] = None,
    configure_logs: bool = True,
) -> EditionVault:
    """Create the reward token and the vault, and hand the token to the vault.

    The owner deploys the token, names the vault as pending owner, and the
    vault accepts; afterwards only the vault can mint rewards. With
    ``configure_logs`` the ``logging`` section of ``config`` is installed
    first, so deployment itself is logged with it.
    """
    if configure_logs:
        configure_logging(config.logging)
    if hooks is not None:
        runtime.subscribe(hooks)
    token = RewardToken(runtime, owner=owner)
    vault = EditionVault(runtime, config, owner=owner, reward_token=token)
    token.transfer_ownership(owner, vault.address)
    vault.accept_reward_ownership(owner)
    return vault
