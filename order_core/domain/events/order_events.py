"""
Order Domain Events.

Events that occur during the order lifecycle. Published on the event bus
after the corresponding write has been persisted.
"""
from dataclasses import dataclass
from typing import Optional

from .base import DomainEvent


@dataclass
class _OrderEvent(DomainEvent):
    order_number: str = ""

    def __post_init__(self):
        """Set aggregate_id to order_number."""
        if not self.aggregate_id and self.order_number:
            object.__setattr__(self, 'aggregate_id', self.order_number)
        super().__post_init__()


@dataclass
class OrderPlacedEvent(_OrderEvent):
    """
    Order was placed at checkout.

    Consumers: notification dispatch, restaurant dashboards.
    """

    restaurant_id: str = ""
    user_email: str = ""
    total_amount: str = ""
    currency: str = ""
    status: str = ""


@dataclass
class OrderStatusChangedEvent(_OrderEvent):
    """Delivery status moved along the state machine."""

    previous_status: str = ""
    new_status: str = ""


@dataclass
class OrderCancelledEvent(_OrderEvent):
    previous_status: str = ""
    reason: Optional[str] = None


@dataclass
class PaymentStatusChangedEvent(_OrderEvent):
    previous_status: str = ""
    new_status: str = ""


@dataclass
class OrderRatedEvent(_OrderEvent):
    rating: int = 0
    review: Optional[str] = None


@dataclass
class OrderUpdatedEvent(_OrderEvent):
    """
    Items or charges changed and totals were recomputed.
    """

    updated_fields: dict = None
    total_amount: str = ""

    def __post_init__(self):
        if self.updated_fields is None:
            object.__setattr__(self, 'updated_fields', {})
        super().__post_init__()
