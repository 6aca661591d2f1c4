"""Application DTOs."""
from .order_dto import (
    AddressDTO,
    ClientTotalsInput,
    ContactInfoDTO,
    CreateOrderRequest,
    CreateOrderResult,
    OrderDTO,
    OrderItemDTO,
    OrderItemInput,
    OrderListDTO,
)

__all__ = [
    "AddressDTO",
    "ClientTotalsInput",
    "ContactInfoDTO",
    "CreateOrderRequest",
    "CreateOrderResult",
    "OrderDTO",
    "OrderItemDTO",
    "OrderItemInput",
    "OrderListDTO",
]
