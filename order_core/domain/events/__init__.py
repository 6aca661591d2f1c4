"""Domain events."""

from .base import DomainEvent
from .order_events import (
    OrderCancelledEvent,
    OrderPlacedEvent,
    OrderRatedEvent,
    OrderStatusChangedEvent,
    OrderUpdatedEvent,
    PaymentStatusChangedEvent,
)

__all__ = [
    "DomainEvent",
    "OrderCancelledEvent",
    "OrderPlacedEvent",
    "OrderRatedEvent",
    "OrderStatusChangedEvent",
    "OrderUpdatedEvent",
    "PaymentStatusChangedEvent",
]
