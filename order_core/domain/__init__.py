"""Domain layer - pure domain models and interfaces."""

from .entities import ContactInfo, DeliveryAddress, Order, OrderDraft, OrderItem
from .enums import DeliveryType, OrderStatus, PaymentMethod, PaymentStatus
from .repositories import OrderFilter, OrderPage, OrderRepository, OrderSort
from .state_machine import CancellationPolicy
from .value_objects import Money, OrderCharges, OrderNumber, OrderTotals

__all__ = [
    "CancellationPolicy",
    "ContactInfo",
    "DeliveryAddress",
    "DeliveryType",
    "Money",
    "Order",
    "OrderCharges",
    "OrderDraft",
    "OrderFilter",
    "OrderItem",
    "OrderNumber",
    "OrderPage",
    "OrderRepository",
    "OrderSort",
    "OrderStatus",
    "OrderTotals",
    "PaymentMethod",
    "PaymentStatus",
]
