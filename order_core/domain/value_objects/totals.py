"""
Order charges and totals.

Balance Equation (MUST ALWAYS HOLD):
    total_amount = subtotal + delivery_fee + tax + service_fee + tip - discount_amount

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
"""
from dataclasses import dataclass, fields
from typing import Iterable, Optional

from ..exceptions import PricingError, ValidationError
from .value_objects import Money


@dataclass(frozen=True)
class OrderCharges:
    """
    Every amount that feeds the total apart from the items themselves.

    All charges are non-negative; discount_amount is subtracted.
    """
    delivery_fee: Money
    tax: Money
    service_fee: Money
    tip: Money
    discount_amount: Money

    @classmethod
    def none(cls, currency: str = "USD") -> 'OrderCharges':
        zero = Money.zero(currency)
        return cls(delivery_fee=zero, tax=zero, service_fee=zero, tip=zero, discount_amount=zero)

    def validate(self) -> None:
        for charge in fields(self):
            value: Money = getattr(self, charge.name)
            if value.is_negative():
                raise ValidationError(
                    f"{charge.name} cannot be negative: {value}",
                    field=charge.name,
                    code="pricing.negative_charge",
                )


@dataclass(frozen=True)
class OrderTotals:
    """Server-computed monetary fields of an order."""
    subtotal: Money
    delivery_fee: Money
    tax: Money
    service_fee: Money
    tip: Money
    discount_amount: Money
    total_amount: Money

    def differs_from(self, other_total: Money, tolerance: Money) -> bool:
        """True if a (client-supplied) total is further than tolerance from ours."""
        return (self.total_amount - other_total).abs() > tolerance


def compute_subtotal(item_totals: Iterable[Money], currency: str = "USD") -> Money:
    subtotal = Money.zero(currency)
    for item_total in item_totals:
        subtotal = subtotal + item_total
    return subtotal


def compute_totals(
    item_totals: Iterable[Money],
    charges: OrderCharges,
    currency: Optional[str] = None,
) -> OrderTotals:
    """
    Compute authoritative totals from item totals and charges.

    Raises:
        ValidationError: If any charge is negative
        PricingError: If the discount exceeds everything else (negative total)
    """
    charges.validate()
    subtotal = compute_subtotal(item_totals, currency or charges.delivery_fee.currency)

    total = (
        subtotal
        + charges.delivery_fee
        + charges.tax
        + charges.service_fee
        + charges.tip
        - charges.discount_amount
    )
    if total.is_negative():
        # Never clamp silently: a negative total means the pricing inputs are wrong
        raise PricingError(
            f"Computed total is negative ({total}): discount {charges.discount_amount} "
            f"exceeds subtotal plus charges",
            field="discount_amount",
            details={"unclamped_total": str(total.amount)},
        )

    return OrderTotals(
        subtotal=subtotal,
        delivery_fee=charges.delivery_fee,
        tax=charges.tax,
        service_fee=charges.service_fee,
        tip=charges.tip,
        discount_amount=charges.discount_amount,
        total_amount=total,
    )
