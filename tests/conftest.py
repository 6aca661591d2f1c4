"""Shared fixtures: a fixed clock, an in-memory catalog, tokens and request builders."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from order_core.application.dtos.order_dto import (
    AddressDTO,
    ContactInfoDTO,
    CreateOrderRequest,
    OrderItemInput,
)
from order_core.application.interfaces import Actor, RestaurantInfo
from order_core.application.services.order_service import OrderApplicationService
from order_core.domain.entities.order import ContactInfo, DeliveryAddress, OrderDraft, OrderItem
from order_core.domain.value_objects import Coupon, DiscountType, Money
from order_core.infrastructure.adapters.catalog import InMemoryCatalogSource
from order_core.infrastructure.adapters.identity import StaticTokenAuthorizer
from order_core.infrastructure.adapters.notifications.mock_notification_service import MockOrderNotifier
from order_core.infrastructure.adapters.persistence import InMemoryOrderRepository
from order_core.infrastructure.event_bus import InMemoryEventBus
from order_core.settings.modules.order_settings import OrderSettings


FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

CUSTOMER_TOKEN = "customer-token"
OTHER_CUSTOMER_TOKEN = "other-token"
ADMIN_TOKEN = "admin-token"
OWNER_TOKEN = "owner-token"


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def order_settings():
    return OrderSettings(
        currency="USD",
        tax_rate=Decimal("0.08"),
        service_fee_rate=Decimal("0"),
        default_delivery_fee=Decimal("2.99"),
        default_delivery_minutes=45,
        totals_tolerance=Decimal("0.01"),
        order_number_max_attempts=3,
        status_update_max_attempts=3,
        allow_cancel_while_preparing=False,
        notification_timeout_seconds=1.0,
    )


@pytest.fixture
def catalog():
    catalog = InMemoryCatalogSource()
    catalog.add_restaurant(
        RestaurantInfo(
            id="rest-1",
            name="Pasta Palace",
            delivery_fee_base=Money(Decimal("2.99")),
            max_delivery_minutes=40,
            owner_id="owner-1",
        ),
        menu={
            "carbonara": Money(Decimal("16.99")),
            "garlic-bread": Money(Decimal("6.99")),
        },
    )
    catalog.add_restaurant(
        RestaurantInfo(id="rest-2", name="Sushi Spot", owner_id="owner-2"),
    )
    catalog.add_restaurant(
        RestaurantInfo(id="rest-closed", name="Closed Diner", is_active=False),
    )
    catalog.add_coupon(
        Coupon(
            code="SAVE10",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("10"),
            valid_from=datetime(2024, 1, 1, tzinfo=timezone.utc),
            valid_until=datetime(2024, 12, 31, tzinfo=timezone.utc),
            min_order_amount=Money(Decimal("20")),
            max_discount=Money(Decimal("5")),
        )
    )
    return catalog


@pytest.fixture
def authorizer():
    return StaticTokenAuthorizer({
        CUSTOMER_TOKEN: Actor(id="user-1", email="ada@example.com"),
        OTHER_CUSTOMER_TOKEN: Actor(id="user-2", email="bob@example.com"),
        ADMIN_TOKEN: Actor(id="admin-1", email="admin@example.com", is_admin=True),
        OWNER_TOKEN: Actor(id="owner-1", email="owner@example.com"),
    })


@pytest.fixture
def notifier():
    return MockOrderNotifier()


@pytest.fixture
def repository():
    return InMemoryOrderRepository()


@pytest.fixture
def event_bus():
    return InMemoryEventBus()


@pytest_asyncio.fixture
async def service(repository, notifier, authorizer, catalog, order_settings, event_bus, clock):
    """Service on in-memory adapters; in-flight notifications are awaited on teardown."""
    service = OrderApplicationService(
        repository=repository,
        notifier=notifier,
        authorizer=authorizer,
        catalog=catalog,
        settings=order_settings,
        event_bus=event_bus,
        clock=clock,
    )
    yield service
    await service.dispatcher.drain()


@pytest.fixture
def make_request():
    """Factory for a valid checkout request: 16.99 x1 + 6.99 x2 delivered from rest-1."""

    def _make(**overrides) -> CreateOrderRequest:
        data = dict(
            restaurant_id="rest-1",
            restaurant_name="Pasta Palace",
            items=[
                OrderItemInput(name="Carbonara", unit_price=Decimal("16.99"), quantity=1, menu_item_id="carbonara"),
                OrderItemInput(name="Garlic bread", unit_price=Decimal("6.99"), quantity=2, menu_item_id="garlic-bread"),
            ],
            delivery_type="delivery",
            delivery_address=AddressDTO(street="1 Main St", city="Springfield", state="IL", zip_code="62701"),
            contact_info=ContactInfoDTO(
                first_name="Ada", last_name="Lovelace", phone="555-0100", email="ada@example.com"
            ),
            payment_method="cash_on_delivery",
        )
        data.update(overrides)
        return CreateOrderRequest(**data)

    return _make


@pytest.fixture
def make_draft():
    """Factory for a valid domain draft with the same cart as make_request."""

    def _make(**overrides) -> OrderDraft:
        data = dict(
            restaurant_id="rest-1",
            restaurant_name="Pasta Palace",
            items=[
                OrderItem(name="Carbonara", unit_price=Money(Decimal("16.99")), quantity=1),
                OrderItem(name="Garlic bread", unit_price=Money(Decimal("6.99")), quantity=2),
            ],
            contact_info=ContactInfo(
                first_name="Ada", last_name="Lovelace", phone="555-0100", email="ada@example.com"
            ),
            payment_method="cash_on_delivery",
            delivery_type="delivery",
            delivery_address=DeliveryAddress(
                street="1 Main St", city="Springfield", state="IL", zip_code="62701"
            ),
            user_id="user-1",
            user_email="ada@example.com",
        )
        data.update(overrides)
        return OrderDraft(**data)

    return _make
