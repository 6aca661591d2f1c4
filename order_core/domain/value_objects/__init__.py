"""Domain value objects."""

from .value_objects import Money, round_to_minor_unit
from .order_number import OrderNumber
from .totals import OrderCharges, OrderTotals, compute_subtotal, compute_totals
from .coupon import Coupon, DiscountType

__all__ = [
    "Coupon",
    "DiscountType",
    "Money",
    "OrderCharges",
    "OrderNumber",
    "OrderTotals",
    "compute_subtotal",
    "compute_totals",
    "round_to_minor_unit",
]
