"""Application services."""
from .notification_dispatcher import NotificationDispatcher, NotificationReport
from .order_number_generator import OrderNumberGenerator
from .order_service import OrderApplicationService
from .pricing_service import PricingService

__all__ = [
    "NotificationDispatcher",
    "NotificationReport",
    "OrderApplicationService",
    "OrderNumberGenerator",
    "PricingService",
]
