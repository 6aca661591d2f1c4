"""
Mock Order Notifier Implementation.

This simulates notifications for testing and demos.
"""
import asyncio
import logging
from typing import Dict, List, Optional

from order_core.application.interfaces import INotifier
from order_core.domain.entities.order import Order
from order_core.domain.exceptions import DependencyFailureError


logger = logging.getLogger(__name__)


class MockOrderNotifier(INotifier):
    """
    Mock implementation of the order notifier.

    Records notifications instead of sending them. Each channel can be told
    to fail or to stall, to exercise the best-effort dispatch path.
    """

    def __init__(self):
        """Initialize mock notifier."""
        self.notifications_sent: List[Dict[str, str]] = []
        self.fail_customer = False
        self.fail_admin = False
        self.delay_seconds: Optional[float] = None
        logger.info("MockOrderNotifier initialized (console logging)")

    async def notify_order_confirmed(self, order: Order) -> None:
        await self._maybe_stall()
        if self.fail_customer:
            raise DependencyFailureError("notifier", "customer channel unavailable")

        self.notifications_sent.append({
            "type": "order_confirmed",
            "order_number": str(order.order_number),
            "email": order.notification_email,
        })
        logger.info(
            f"Order confirmation for {order.order_number} -> {order.notification_email} "
            f"(total {order.total_amount})"
        )

    async def notify_admin(self, order: Order) -> None:
        await self._maybe_stall()
        if self.fail_admin:
            raise DependencyFailureError("notifier", "admin channel unavailable")

        self.notifications_sent.append({
            "type": "admin_alert",
            "order_number": str(order.order_number),
            "restaurant_id": order.restaurant_id,
        })
        logger.info(f"Admin alert: new order {order.order_number} at {order.restaurant_name}")

    async def _maybe_stall(self) -> None:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

    def get_notifications(self, kind: Optional[str] = None) -> List[Dict[str, str]]:
        """Get sent notifications (for testing)."""
        if kind is None:
            return list(self.notifications_sent)
        return [n for n in self.notifications_sent if n["type"] == kind]

    def clear(self) -> None:
        """Clear notifications (for testing)."""
        self.notifications_sent.clear()
