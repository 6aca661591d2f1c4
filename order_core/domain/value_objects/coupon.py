"""Coupon value object used to derive an order's discount."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..exceptions import ValidationError
from .value_objects import Money


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


@dataclass(frozen=True)
class Coupon:
    """
    Discount coupon supplied by the catalog.

    discount_value is a percentage (0-100) for PERCENTAGE coupons and an
    amount in the order currency for FIXED_AMOUNT coupons.
    """
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    valid_from: datetime
    valid_until: datetime
    min_order_amount: Money = Money.zero()
    max_discount: Optional[Money] = None
    usage_limit: Optional[int] = None
    used_count: int = 0
    is_active: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'code', self.code.strip().upper())
        if not isinstance(self.discount_value, Decimal):
            object.__setattr__(self, 'discount_value', Decimal(str(self.discount_value)))
        if self.discount_value < 0:
            raise ValueError(f"Coupon discount cannot be negative: {self.discount_value}")
        if self.discount_type is DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError(f"Percentage coupon above 100%: {self.discount_value}")

    def is_valid(self, now: datetime) -> bool:
        return (
            self.is_active
            and self.valid_from <= now <= self.valid_until
            and (self.usage_limit is None or self.used_count < self.usage_limit)
        )

    def discount_for(self, subtotal: Money, now: datetime) -> Money:
        """
        Discount this coupon grants on a subtotal.

        The discount never exceeds max_discount nor the subtotal itself.

        Raises:
            ValidationError: If the coupon is not currently usable or the
                subtotal is below the minimum order amount
        """
        if not self.is_valid(now):
            raise ValidationError(
                f"Coupon {self.code} is not valid",
                field="coupon_code",
                code="coupon.invalid",
            )
        if subtotal < Money(self.min_order_amount.amount, subtotal.currency):
            raise ValidationError(
                f"Coupon {self.code} requires a minimum order of {self.min_order_amount}",
                field="coupon_code",
                code="coupon.min_order",
            )

        if self.discount_type is DiscountType.PERCENTAGE:
            discount = subtotal.multiply(self.discount_value / 100)
        else:
            discount = Money(self.discount_value, subtotal.currency)

        if self.max_discount is not None:
            cap = Money(self.max_discount.amount, subtotal.currency)
            if discount > cap:
                discount = cap
        if discount > subtotal:
            discount = subtotal
        return discount
