"""Domain entities."""
from .order import (
    ContactInfo,
    DeliveryAddress,
    Order,
    OrderDraft,
    OrderItem,
    ValidatedDraft,
)

__all__ = [
    "ContactInfo",
    "DeliveryAddress",
    "Order",
    "OrderDraft",
    "OrderItem",
    "ValidatedDraft",
]
