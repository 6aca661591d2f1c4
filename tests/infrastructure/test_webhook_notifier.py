"""
Tests for WebhookOrderNotifier with a patched aiohttp session.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from order_core.domain.entities.order import Order
from order_core.domain.exceptions import DependencyFailureError
from order_core.domain.value_objects import OrderCharges, OrderNumber
from order_core.infrastructure.adapters.notifications.webhook_notification_service import (
    WebhookOrderNotifier,
)
from order_core.settings.modules.integrations_settings import NotificationSettings


CLIENT_SESSION = (
    "order_core.infrastructure.adapters.notifications.webhook_notification_service.aiohttp.ClientSession"
)


@pytest.fixture
def placed_order(make_draft):
    order = Order.place(make_draft(), OrderCharges.none("USD"))
    order.assign_order_number(OrderNumber("ORD17145648000001234"))
    return order


@pytest.fixture
def webhook_settings():
    return NotificationSettings(
        customer_webhook_url="https://relay.example.com/orders",
        slack_webhook_url="https://hooks.slack.example.com/T000/B000",
        slack_prefix="[test]",
    )


def _mock_session(mock_client_session, status=200, text=""):
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)

    session = MagicMock()
    session.post.return_value.__aenter__.return_value = response
    mock_client_session.return_value.__aenter__.return_value = session
    return session


@pytest.mark.asyncio
async def test_customer_confirmation_payload(webhook_settings, placed_order):
    with patch(CLIENT_SESSION) as mock_client_session:
        session = _mock_session(mock_client_session)

        await WebhookOrderNotifier(webhook_settings).notify_order_confirmed(placed_order)

    url = session.post.call_args.args[0]
    payload = session.post.call_args.kwargs["json"]
    assert url == "https://relay.example.com/orders"
    assert payload["type"] == "order_confirmed"
    assert payload["to"] == "ada@example.com"
    assert payload["order"]["order_number"] == "ORD17145648000001234"
    assert payload["order"]["total_amount"] == "30.97"
    assert len(payload["order"]["items"]) == 2


@pytest.mark.asyncio
async def test_admin_alert_goes_to_slack(webhook_settings, placed_order):
    with patch(CLIENT_SESSION) as mock_client_session:
        session = _mock_session(mock_client_session)

        await WebhookOrderNotifier(webhook_settings).notify_admin(placed_order)

    assert session.post.call_args.args[0] == "https://hooks.slack.example.com/T000/B000"
    text = session.post.call_args.kwargs["json"]["attachments"][0]["text"]
    assert text.startswith("[test]")
    assert "ORD17145648000001234" in text
    assert "Pasta Palace" in text


@pytest.mark.asyncio
async def test_non_2xx_response_raises(webhook_settings, placed_order):
    with patch(CLIENT_SESSION) as mock_client_session:
        _mock_session(mock_client_session, status=502, text="bad gateway")

        with pytest.raises(DependencyFailureError) as exc_info:
            await WebhookOrderNotifier(webhook_settings).notify_admin(placed_order)

    assert exc_info.value.dependency == "slack"
    assert "502" in exc_info.value.message


@pytest.mark.asyncio
async def test_client_error_raises(webhook_settings, placed_order):
    with patch(CLIENT_SESSION) as mock_client_session:
        session = _mock_session(mock_client_session)
        session.post.side_effect = aiohttp.ClientConnectionError("refused")

        with pytest.raises(DependencyFailureError) as exc_info:
            await WebhookOrderNotifier(webhook_settings).notify_order_confirmed(placed_order)

    assert exc_info.value.dependency == "customer"


@pytest.mark.asyncio
async def test_unconfigured_channel_is_skipped(placed_order):
    settings = NotificationSettings(customer_webhook_url=None, slack_webhook_url=None)

    with patch(CLIENT_SESSION) as mock_client_session:
        await WebhookOrderNotifier(settings).notify_admin(placed_order)

    mock_client_session.assert_not_called()
