"""
Webhook Order Notifier Implementation.

Posts the customer confirmation to an email relay webhook and the admin
alert to a Slack incoming webhook.
"""
from typing import Any, Dict, Optional
import logging

import aiohttp

from order_core.application.interfaces import INotifier
from order_core.domain.entities.order import Order
from order_core.domain.exceptions import DependencyFailureError
from order_core.settings.modules.integrations_settings import NotificationSettings


logger = logging.getLogger(__name__)


class WebhookOrderNotifier(INotifier):
    """
    aiohttp implementation of the order notifier.

    Non-2xx responses raise DependencyFailureError; the dispatcher logs it.
    A channel without a configured URL is skipped with a warning.
    """

    def __init__(self, settings: NotificationSettings, timeout_seconds: float = 10.0):
        """
        Initialize webhook notifier.

        Args:
            settings: Notification settings with webhook URLs
            timeout_seconds: Total HTTP timeout per request
        """
        self.settings = settings
        self.customer_webhook_url = settings.customer_webhook_url
        self.slack_webhook_url = settings.slack_webhook_url
        self.prefix = settings.slack_prefix
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        logger.info("WebhookOrderNotifier initialized")

    async def notify_order_confirmed(self, order: Order) -> None:
        """Send the confirmation payload to the customer relay."""
        payload = {
            "type": "order_confirmed",
            "to": order.notification_email,
            "order": self._order_summary(order),
        }
        await self._post("customer", self.customer_webhook_url, payload)

    async def notify_admin(self, order: Order) -> None:
        """Send a new-order alert to Slack."""
        text = (
            f"{self.prefix} :receipt: *New order* `{order.order_number}`\n"
            f"Restaurant: {order.restaurant_name}\n"
            f"Customer: {order.contact_info.first_name} {order.contact_info.last_name}\n"
            f"Total: {order.total_amount}\n"
            f"Payment: {order.payment_method.value} ({order.payment_status.value})"
        )
        payload = {
            "attachments": [
                {
                    "color": "good",
                    "text": text,
                    "mrkdwn_in": ["text"],
                }
            ]
        }
        await self._post("slack", self.slack_webhook_url, payload)

    @staticmethod
    def _order_summary(order: Order) -> Dict[str, Any]:
        return {
            "order_number": str(order.order_number),
            "restaurant_name": order.restaurant_name,
            "customer_name": f"{order.contact_info.first_name} {order.contact_info.last_name}",
            "items": [
                {
                    "name": item.name,
                    "quantity": item.quantity,
                    "unit_price": str(item.unit_price.amount),
                    "item_total": str(item.item_total.amount),
                }
                for item in order.items
            ],
            "subtotal": str(order.subtotal.amount),
            "delivery_fee": str(order.delivery_fee.amount),
            "tax": str(order.tax.amount),
            "discount_amount": str(order.discount_amount.amount),
            "total_amount": str(order.total_amount.amount),
            "currency": order.currency,
            "delivery_type": order.delivery_type.value,
            "estimated_delivery": (
                order.estimated_delivery.isoformat() if order.estimated_delivery else None
            ),
        }

    async def _post(self, channel: str, url: Optional[str], payload: Dict[str, Any]) -> None:
        """
        POST a JSON payload.

        Args:
            channel: Channel name for logs and errors
            url: Webhook URL (None: skip)
            payload: JSON body
        """
        if not url:
            logger.warning(f"{channel} webhook_url not configured, skipping notification")
            return

        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(url, json=payload) as response:
                    if not 200 <= response.status < 300:
                        error_text = await response.text()
                        raise DependencyFailureError(
                            channel,
                            f"{channel} webhook returned {response.status}: {error_text}",
                        )
        except aiohttp.ClientError as e:
            raise DependencyFailureError(channel, f"{channel} webhook request failed: {e}") from e

        logger.info(f"{channel} notification sent successfully")
