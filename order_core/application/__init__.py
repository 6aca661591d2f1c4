"""Application layer - services, interfaces, and DTOs."""

from .dtos import CreateOrderRequest, CreateOrderResult, OrderDTO, OrderItemDTO, OrderListDTO
from .interfaces import Actor, IAuthorizer, ICatalogSource, INotifier, RestaurantInfo
from .services import NotificationDispatcher, OrderApplicationService, OrderNumberGenerator

__all__ = [
    # DTOs
    "CreateOrderRequest",
    "CreateOrderResult",
    "OrderDTO",
    "OrderItemDTO",
    "OrderListDTO",
    # Services
    "NotificationDispatcher",
    "OrderApplicationService",
    "OrderNumberGenerator",
    # Interfaces
    "Actor",
    "IAuthorizer",
    "ICatalogSource",
    "INotifier",
    "RestaurantInfo",
]
