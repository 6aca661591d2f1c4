"""Domain enumerations."""

from .order_status import DeliveryType, OrderStatus, PaymentMethod, PaymentStatus

__all__ = ["DeliveryType", "OrderStatus", "PaymentMethod", "PaymentStatus"]
