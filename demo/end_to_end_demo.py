"""
End-to-End Demo: Food Delivery Order Lifecycle

This demonstrates the complete workflow:
1. Checkout with server-side pricing (menu prices, fees, tax)
2. Persist under a unique order number
3. Best-effort customer / admin notifications
4. Restaurant owner drives the order through the status machine
5. Customer rates the delivered order

Uses in-memory implementations (no database or webhooks needed).
"""
import asyncio
from decimal import Decimal

from order_core.application.dtos.order_dto import (
    AddressDTO,
    ContactInfoDTO,
    CreateOrderRequest,
    OrderItemInput,
)
from order_core.application.interfaces import Actor, RestaurantInfo
from order_core.domain.exceptions import InvalidTransitionError
from order_core.domain.value_objects import Money
from order_core.infrastructure.adapters.catalog import InMemoryCatalogSource
from order_core.infrastructure.adapters.identity import StaticTokenAuthorizer
from order_core.infrastructure.adapters.notifications.mock_notification_service import MockOrderNotifier
from order_core.infrastructure.container import build_order_service
from order_core.infrastructure.event_bus import InMemoryEventBus
from order_core.infrastructure.logging import get_logger

# Library loggers live under "order_core"
get_logger("order_core")
logger = get_logger(__name__)


async def demo_order_lifecycle():
    """Demo: one order from checkout to rating."""

    print("\n" + "=" * 80)
    print("DEMO: Food Delivery Order Lifecycle")
    print("=" * 80 + "\n")

    # =========================================================================
    # SETUP: in-memory dependencies
    # =========================================================================
    catalog = InMemoryCatalogSource()
    catalog.add_restaurant(
        RestaurantInfo(
            id="rest-1",
            name="Pasta Palace",
            delivery_fee_base=Money(Decimal("2.99")),
            max_delivery_minutes=40,
            owner_id="owner-1",
        ),
        menu={"carbonara": Money(Decimal("16.99")), "garlic-bread": Money(Decimal("6.99"))},
    )
    authorizer = StaticTokenAuthorizer({
        "customer-token": Actor(id="user-1", email="ada@example.com"),
        "owner-token": Actor(id="owner-1", email="owner@example.com"),
    })
    notifier = MockOrderNotifier()
    event_bus = InMemoryEventBus()

    service = build_order_service(
        catalog=catalog,
        authorizer=authorizer,
        notifier=notifier,
        event_bus=event_bus,
    )

    # =========================================================================
    # CHECKOUT
    # =========================================================================
    request = CreateOrderRequest(
        restaurant_id="rest-1",
        restaurant_name="Pasta Palace",
        items=[
            OrderItemInput(name="Carbonara", unit_price=Decimal("16.99"), quantity=1, menu_item_id="carbonara"),
            OrderItemInput(name="Garlic bread", unit_price=Decimal("6.99"), quantity=2, menu_item_id="garlic-bread"),
        ],
        delivery_type="delivery",
        delivery_address=AddressDTO(street="1 Main St", city="Springfield", state="IL", zip_code="62701"),
        contact_info=ContactInfoDTO(first_name="Ada", last_name="Lovelace", phone="555-0100"),
        payment_method="cash_on_delivery",
    )
    result = await service.create_order(request, credential="customer-token")
    order = result.order
    print(f"📦 Order {order.order_number}: subtotal {order.subtotal}, "
          f"delivery {order.delivery_fee}, tax {order.tax}, total {order.total_amount}")

    await service.dispatcher.drain()
    print(f"🔔 Notifications sent: {len(notifier.get_notifications())}")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================
    for status in ("confirmed", "preparing", "ready", "out_for_delivery", "delivered"):
        order = await service.update_status(order.id, status, credential="owner-token")
        print(f"🚚 Status: {order.status}")

    try:
        await service.cancel_order(order.id, "Changed my mind", credential="customer-token")
    except InvalidTransitionError as e:
        print(f"⛔ Cancel rejected: {e.message}")

    order = await service.rate_order(order.id, 5, "Excellent", credential="customer-token")
    print(f"⭐ Rated {order.rating}/5")

    print(f"\n📜 Events published: {[event.event_type for event in event_bus.published]}")
    logger.info("Demo finished")


if __name__ == "__main__":
    asyncio.run(demo_order_lifecycle())
