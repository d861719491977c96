"""Acquisition preconditions shared by the base and discount price paths."""

from __future__ import annotations

from editionvault.errors import InsufficientPayment, InvalidRecipient, SupplyExhausted
from editionvault.identity import Address

from .supply import SupplyCounter


class MintGate:
    """
    Validates a purchase before anything is mutated.

    Checks run in a fixed order and the first failing one is reported:
    1. recipient is not the null identity
    2. supply remains
    3. payment covers the price
    """

    def __init__(self, supply: SupplyCounter) -> None:
        self._supply = supply

    def validate(self, recipient: Address, paid_amount: int, required_price: int) -> None:
        if recipient.is_null:
            raise InvalidRecipient()
        if not self._supply.has_remaining():
            raise SupplyExhausted(cap=self._supply.cap)
        if paid_amount < required_price:
            raise InsufficientPayment(paid=paid_amount, required=required_price)
