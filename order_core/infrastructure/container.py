"""
Dependency wiring.

Builds an OrderApplicationService from settings, falling back to the
in-memory adapters for anything the host application does not supply.
"""
from __future__ import annotations

import logging
from typing import Optional

from order_core.application.interfaces import IAuthorizer, ICatalogSource, INotifier
from order_core.application.services.notification_dispatcher import NotificationDispatcher
from order_core.application.services.order_service import OrderApplicationService
from order_core.domain.event_bus import EventBus
from order_core.domain.repositories import OrderRepository
from order_core.infrastructure.adapters.catalog import InMemoryCatalogSource
from order_core.infrastructure.adapters.identity import StaticTokenAuthorizer
from order_core.infrastructure.adapters.notifications.mock_notification_service import MockOrderNotifier
from order_core.infrastructure.adapters.persistence import InMemoryOrderRepository
from order_core.infrastructure.event_bus import InMemoryEventBus
from order_core.settings import AppSettings, NotificationSettings, get_app_settings

logger = logging.getLogger(__name__)


def build_notifier(settings: NotificationSettings, timeout_seconds: float) -> INotifier:
    """Webhook notifier when any webhook is configured, otherwise the mock."""
    if settings.customer_webhook_url or settings.slack_webhook_url:
        from order_core.infrastructure.adapters.notifications.webhook_notification_service import (
            WebhookOrderNotifier,
        )
        logger.info("Using WebhookOrderNotifier")
        return WebhookOrderNotifier(settings, timeout_seconds=timeout_seconds)

    logger.info("No webhook configured, using MockOrderNotifier")
    return MockOrderNotifier()


def build_order_service(
    settings: Optional[AppSettings] = None,
    repository: Optional[OrderRepository] = None,
    catalog: Optional[ICatalogSource] = None,
    authorizer: Optional[IAuthorizer] = None,
    notifier: Optional[INotifier] = None,
    event_bus: Optional[EventBus] = None,
) -> OrderApplicationService:
    settings = settings or get_app_settings()
    timeout = settings.orders.notification_timeout_seconds
    notifier = notifier or build_notifier(settings.notifications, timeout)

    return OrderApplicationService(
        repository=repository or InMemoryOrderRepository(),
        notifier=notifier,
        authorizer=authorizer or StaticTokenAuthorizer(),
        catalog=catalog or InMemoryCatalogSource(),
        settings=settings.orders,
        event_bus=event_bus or InMemoryEventBus(),
        dispatcher=NotificationDispatcher(
            notifier,
            timeout_seconds=timeout,
            enabled=settings.notifications.enabled,
        ),
    )
