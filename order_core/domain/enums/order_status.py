"""Enumerations persisted with every order. Values are stored verbatim."""
from enum import Enum


class OrderStatus(str, Enum):
    """Delivery lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED)


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    CASH_ON_DELIVERY = "cash_on_delivery"

    @property
    def is_prepaid(self) -> bool:
        return self is not PaymentMethod.CASH_ON_DELIVERY


class PaymentStatus(str, Enum):
    """Payment status, independent of the delivery status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class DeliveryType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"
