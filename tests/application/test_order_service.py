"""
Tests for OrderApplicationService with in-memory adapters.
"""
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from order_core.application.dtos.order_dto import (
    ClientTotalsInput,
    ContactInfoDTO,
    OrderItemInput,
)
from order_core.application.interfaces import IAuthorizer, ICatalogSource
from order_core.application.services.order_service import OrderApplicationService
from order_core.domain.exceptions import (
    DependencyFailureError,
    InvalidArgumentError,
    InvalidOperationError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

from conftest import (
    ADMIN_TOKEN,
    CUSTOMER_TOKEN,
    FIXED_NOW,
    OTHER_CUSTOMER_TOKEN,
    OWNER_TOKEN,
)


async def _deliver(service, order_id):
    for status in ("confirmed", "preparing", "ready", "out_for_delivery", "delivered"):
        await service.update_status(order_id, status, OWNER_TOKEN)


# =============================================================================
# CHECKOUT
# =============================================================================

class TestCreateOrder:

    @pytest.mark.asyncio
    async def test_reference_checkout(self, service, make_request, notifier, event_bus):
        result = await service.create_order(make_request(), CUSTOMER_TOKEN)
        order = result.order

        assert order.subtotal == Decimal("30.97")
        assert order.delivery_fee == Decimal("2.99")
        assert order.tax == Decimal("2.48")
        assert order.total_amount == Decimal("36.44")
        assert order.status == "pending"
        assert order.payment_status == "pending"
        assert order.user_id == "user-1"
        assert order.user_email == "ada@example.com"
        assert order.order_number.startswith("ORD") and len(order.order_number) == 20
        assert order.estimated_delivery == FIXED_NOW + timedelta(minutes=40)
        assert order.version == 1
        assert result.notifications_scheduled is True
        assert result.client_totals_mismatch is False

        await service.dispatcher.drain()
        assert len(notifier.get_notifications("order_confirmed")) == 1
        assert len(notifier.get_notifications("admin_alert")) == 1
        assert [e.event_type for e in event_bus.published] == ["OrderPlacedEvent"]

    @pytest.mark.asyncio
    async def test_prepaid_checkout_is_confirmed(self, service, make_request):
        result = await service.create_order(make_request(payment_method="credit_card"), CUSTOMER_TOKEN)

        assert result.order.status == "confirmed"
        assert result.order.payment_status == "completed"

    @pytest.mark.asyncio
    async def test_guest_checkout(self, service, make_request, notifier):
        result = await service.create_order(make_request())

        assert result.order.user_id is None
        assert result.order.user_email == "ada@example.com"
        await service.dispatcher.drain()
        assert notifier.get_notifications("order_confirmed")[0]["email"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_notifications_stay_in_flight_until_drained(self, service, make_request, notifier):
        await service.create_order(make_request(), CUSTOMER_TOKEN)

        assert service.dispatcher.pending == 1
        assert notifier.get_notifications() == []

        await service.dispatcher.drain()
        assert service.dispatcher.pending == 0
        assert len(notifier.get_notifications()) == 2

    @pytest.mark.asyncio
    async def test_guest_without_email_is_rejected(self, service, make_request, repository):
        request = make_request(
            contact_info=ContactInfoDTO(first_name="Ada", last_name="Lovelace", phone="555-0100"),
        )
        with pytest.raises(ValidationError) as exc_info:
            await service.create_order(request)

        assert exc_info.value.code == "contact_info.email"
        assert repository.count() == 0

    @pytest.mark.asyncio
    async def test_signed_in_user_email_is_used_when_contact_has_none(self, service, make_request, notifier):
        request = make_request(
            contact_info=ContactInfoDTO(first_name="Ada", last_name="Lovelace", phone="555-0100"),
        )
        result = await service.create_order(request, CUSTOMER_TOKEN)

        assert result.order.user_email == "ada@example.com"
        assert result.order.contact_info.email is None

    @pytest.mark.asyncio
    async def test_menu_prices_override_client_prices(self, service, make_request):
        request = make_request(
            items=[OrderItemInput(name="Carbonara", unit_price=Decimal("0.01"), quantity=2, menu_item_id="carbonara")],
        )
        result = await service.create_order(request, CUSTOMER_TOKEN)

        assert result.order.items[0].unit_price == Decimal("16.99")
        assert result.order.subtotal == Decimal("33.98")

    @pytest.mark.asyncio
    async def test_unknown_menu_item(self, service, make_request):
        request = make_request(
            items=[OrderItemInput(name="Pizza", unit_price=Decimal("9"), quantity=1, menu_item_id="pizza")],
        )
        with pytest.raises(ValidationError) as exc_info:
            await service.create_order(request, CUSTOMER_TOKEN)

        assert exc_info.value.code == "items.unknown_menu_item"

    @pytest.mark.asyncio
    async def test_unknown_restaurant(self, service, make_request):
        with pytest.raises(NotFoundError):
            await service.create_order(make_request(restaurant_id="nope"), CUSTOMER_TOKEN)

    @pytest.mark.asyncio
    async def test_inactive_restaurant(self, service, make_request):
        with pytest.raises(InvalidOperationError):
            await service.create_order(make_request(restaurant_id="rest-closed"), CUSTOMER_TOKEN)

    @pytest.mark.asyncio
    async def test_pickup_has_no_delivery_fee(self, service, make_request):
        request = make_request(delivery_type="pickup", delivery_address=None)
        result = await service.create_order(request, CUSTOMER_TOKEN)

        assert result.order.delivery_fee == Decimal("0.00")
        assert result.order.delivery_address is None
        assert result.order.total_amount == Decimal("33.45")

    @pytest.mark.asyncio
    async def test_default_delivery_fee_and_time(self, service, make_request):
        request = make_request(
            restaurant_id="rest-2",
            items=[OrderItemInput(name="Maki", unit_price=Decimal("10.00"), quantity=1)],
        )
        result = await service.create_order(request, CUSTOMER_TOKEN)

        assert result.order.restaurant_name == "Sushi Spot"
        assert result.order.delivery_fee == Decimal("2.99")
        assert result.order.estimated_delivery == FIXED_NOW + timedelta(minutes=45)

    @pytest.mark.asyncio
    async def test_tip_is_added(self, service, make_request):
        result = await service.create_order(make_request(tip=Decimal("3.00")), CUSTOMER_TOKEN)

        assert result.order.tip == Decimal("3.00")
        assert result.order.total_amount == Decimal("39.44")

    @pytest.mark.asyncio
    async def test_negative_tip_is_rejected(self, service, make_request):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_order(make_request(tip=Decimal("-1")), CUSTOMER_TOKEN)

        assert exc_info.value.code == "pricing.negative_charge"

    @pytest.mark.asyncio
    async def test_coupon_discount(self, service, make_request):
        result = await service.create_order(make_request(coupon_code="save10"), CUSTOMER_TOKEN)
        order = result.order

        assert order.coupon_code == "SAVE10"
        assert order.discount_amount == Decimal("3.10")
        assert order.total_amount == Decimal("33.34")

    @pytest.mark.asyncio
    async def test_unknown_coupon(self, service, make_request):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_order(make_request(coupon_code="FREEFOOD"), CUSTOMER_TOKEN)

        assert exc_info.value.code == "coupon.invalid"

    @pytest.mark.asyncio
    async def test_client_totals_are_advisory(self, service, make_request, repository):
        matching = make_request(client_totals=ClientTotalsInput(subtotal=Decimal("30.97"), total_amount=Decimal("36.45")))
        wrong = make_request(client_totals=ClientTotalsInput(total_amount=Decimal("30.00")))

        assert (await service.create_order(matching, CUSTOMER_TOKEN)).client_totals_mismatch is False
        result = await service.create_order(wrong, CUSTOMER_TOKEN)

        assert result.client_totals_mismatch is True
        assert result.order.total_amount == Decimal("36.44")
        assert repository.count() == 2

    @pytest.mark.asyncio
    async def test_validation_runs_before_catalog_lookup(self, service, make_request):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_order(make_request(items=[], restaurant_id="nope"), CUSTOMER_TOKEN)

        assert exc_info.value.code == "items.empty"

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_checkout(self, service, make_request, notifier, repository):
        notifier.fail_customer = True

        result = await service.create_order(make_request(), CUSTOMER_TOKEN)
        await service.dispatcher.drain()

        assert repository.count() == 1
        report = service.dispatcher.reports[-1]
        assert report.order_number == result.order.order_number
        assert set(report.failed) == {"customer"}
        assert report.delivered == ["admin"]

    @pytest.mark.asyncio
    async def test_unknown_credential(self, service, make_request):
        with pytest.raises(PermissionDeniedError):
            await service.create_order(make_request(), "forged-token")

    @pytest.mark.asyncio
    async def test_authorizer_failure_is_a_dependency_failure(
        self, repository, notifier, catalog, order_settings, make_request
    ):
        authorizer = AsyncMock(spec=IAuthorizer)
        authorizer.resolve = AsyncMock(side_effect=ConnectionError("identity service down"))
        service = OrderApplicationService(repository, notifier, authorizer, catalog, settings=order_settings)

        with pytest.raises(DependencyFailureError) as exc_info:
            await service.create_order(make_request(), CUSTOMER_TOKEN)

        assert exc_info.value.dependency == "authorizer"

    @pytest.mark.asyncio
    async def test_catalog_failure_is_a_dependency_failure(
        self, repository, notifier, authorizer, order_settings, make_request
    ):
        catalog = AsyncMock(spec=ICatalogSource)
        catalog.get_restaurant = AsyncMock(side_effect=TimeoutError("catalog timeout"))
        service = OrderApplicationService(repository, notifier, authorizer, catalog, settings=order_settings)

        with pytest.raises(DependencyFailureError) as exc_info:
            await service.create_order(make_request(), CUSTOMER_TOKEN)

        assert exc_info.value.dependency == "catalog"
        assert repository.count() == 0


# =============================================================================
# QUERIES
# =============================================================================

class TestQueries:

    @pytest.mark.asyncio
    async def test_get_order_access(self, service, make_request):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order

        assert (await service.get_order(created.id, CUSTOMER_TOKEN)).order_number == created.order_number
        assert (await service.get_order(created.id, ADMIN_TOKEN)).id == created.id
        with pytest.raises(PermissionDeniedError):
            await service.get_order(created.id, OTHER_CUSTOMER_TOKEN)
        with pytest.raises(PermissionDeniedError):
            await service.get_order(created.id, None)

    @pytest.mark.asyncio
    async def test_get_missing_order(self, service):
        with pytest.raises(NotFoundError):
            await service.get_order("missing", ADMIN_TOKEN)

    @pytest.mark.asyncio
    async def test_list_my_orders_newest_first(self, service, make_request, clock):
        first = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order
        clock.advance(minutes=5)
        second = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order
        await service.create_order(make_request(), OTHER_CUSTOMER_TOKEN)

        listing = await service.list_my_orders(CUSTOMER_TOKEN)

        assert listing.total == 2
        assert [o.id for o in listing.orders] == [second.id, first.id]
        assert listing.pages == 1
        assert listing.current_page == 1

    @pytest.mark.asyncio
    async def test_list_my_orders_pagination_and_status(self, service, make_request, clock):
        for _ in range(3):
            await service.create_order(make_request(), CUSTOMER_TOKEN)
            clock.advance(minutes=1)
        await service.create_order(make_request(payment_method="paypal"), CUSTOMER_TOKEN)

        page = await service.list_my_orders(CUSTOMER_TOKEN, page=2, limit=2)
        assert (page.total, page.pages, page.current_page, len(page.orders)) == (4, 2, 2, 2)

        confirmed = await service.list_my_orders(CUSTOMER_TOKEN, status="confirmed")
        assert confirmed.total == 1

    @pytest.mark.asyncio
    async def test_list_my_orders_requires_sign_in(self, service):
        with pytest.raises(PermissionDeniedError):
            await service.list_my_orders(None)

    @pytest.mark.asyncio
    async def test_list_arguments_are_validated(self, service):
        with pytest.raises(InvalidArgumentError):
            await service.list_my_orders(CUSTOMER_TOKEN, page=0)
        with pytest.raises(InvalidArgumentError):
            await service.list_my_orders(CUSTOMER_TOKEN, limit=1000)
        with pytest.raises(InvalidArgumentError):
            await service.list_my_orders(CUSTOMER_TOKEN, status="lost")

    @pytest.mark.asyncio
    async def test_list_all_orders_is_admin_only(self, service, make_request):
        await service.create_order(make_request(), CUSTOMER_TOKEN)
        await service.create_order(make_request(), OTHER_CUSTOMER_TOKEN)

        with pytest.raises(PermissionDeniedError):
            await service.list_all_orders(CUSTOMER_TOKEN)

        listing = await service.list_all_orders(ADMIN_TOKEN)
        assert listing.total == 2
        assert (await service.list_all_orders(ADMIN_TOKEN, user_id="user-2")).total == 1
        assert (await service.list_all_orders(ADMIN_TOKEN, restaurant_id="rest-2")).total == 0


# =============================================================================
# STATE CHANGES
# =============================================================================

class TestStatusUpdates:

    @pytest.mark.asyncio
    async def test_owner_drives_the_lifecycle(self, service, make_request, clock, event_bus):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order
        clock.advance(minutes=30)

        await _deliver(service, created.id)
        order = await service.get_order(created.id, CUSTOMER_TOKEN)

        assert order.status == "delivered"
        assert order.delivered_at == FIXED_NOW + timedelta(minutes=30)
        assert order.version == 6
        status_events = [e for e in event_bus.published if e.event_type == "OrderStatusChangedEvent"]
        assert len(status_events) == 5

    @pytest.mark.asyncio
    async def test_same_status_is_a_no_op(self, service, make_request):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order

        order = await service.update_status(created.id, "pending", ADMIN_TOKEN)
        assert order.version == created.version

    @pytest.mark.asyncio
    async def test_illegal_transition(self, service, make_request):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order

        with pytest.raises(InvalidTransitionError) as exc_info:
            await service.update_status(created.id, "delivered", ADMIN_TOKEN)
        assert exc_info.value.current_status == "pending"

    @pytest.mark.asyncio
    async def test_unknown_status(self, service, make_request):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order

        with pytest.raises(InvalidArgumentError):
            await service.update_status(created.id, "lost", ADMIN_TOKEN)

    @pytest.mark.asyncio
    async def test_customers_cannot_update_status(self, service, make_request):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order

        with pytest.raises(PermissionDeniedError):
            await service.update_status(created.id, "confirmed", CUSTOMER_TOKEN)
        with pytest.raises(PermissionDeniedError):
            await service.update_status(created.id, "confirmed", None)

    @pytest.mark.asyncio
    async def test_payment_status_is_admin_only(self, service, make_request):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order

        with pytest.raises(PermissionDeniedError):
            await service.update_payment_status(created.id, "completed", OWNER_TOKEN)
        with pytest.raises(InvalidArgumentError):
            await service.update_payment_status(created.id, "maybe", ADMIN_TOKEN)

        order = await service.update_payment_status(created.id, "completed", ADMIN_TOKEN)
        assert order.payment_status == "completed"
        assert order.status == "pending"


class TestCancelAndRate:

    @pytest.mark.asyncio
    async def test_owner_cancels_pending_order(self, service, make_request, clock):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order
        clock.advance(minutes=2)

        order = await service.cancel_order(created.id, None, CUSTOMER_TOKEN)

        assert order.status == "cancelled"
        assert order.cancellation_reason == "Cancelled by user"
        assert order.cancelled_at == FIXED_NOW + timedelta(minutes=2)

    @pytest.mark.asyncio
    async def test_cancel_after_preparing_started(self, service, make_request):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order
        await service.update_status(created.id, "confirmed", OWNER_TOKEN)
        await service.update_status(created.id, "preparing", OWNER_TOKEN)

        with pytest.raises(InvalidTransitionError):
            await service.cancel_order(created.id, "Too slow", CUSTOMER_TOKEN)

    @pytest.mark.asyncio
    async def test_lenient_policy_allows_cancel_while_preparing(
        self, repository, notifier, authorizer, catalog, order_settings, clock, make_request
    ):
        settings = order_settings.model_copy(update={"allow_cancel_while_preparing": True})
        service = OrderApplicationService(
            repository, notifier, authorizer, catalog, settings=settings, clock=clock
        )
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order
        await service.update_status(created.id, "confirmed", OWNER_TOKEN)
        await service.update_status(created.id, "preparing", OWNER_TOKEN)

        order = await service.cancel_order(created.id, "Changed my mind", CUSTOMER_TOKEN)
        assert order.status == "cancelled"
        await service.dispatcher.drain()

    @pytest.mark.asyncio
    async def test_only_the_owner_can_cancel(self, service, make_request):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order

        with pytest.raises(PermissionDeniedError):
            await service.cancel_order(created.id, None, OTHER_CUSTOMER_TOKEN)
        with pytest.raises(PermissionDeniedError):
            await service.cancel_order(created.id, None, None)

    @pytest.mark.asyncio
    async def test_rate_delivered_order_once(self, service, make_request, event_bus):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order
        await _deliver(service, created.id)

        order = await service.rate_order(created.id, 5, "Great", CUSTOMER_TOKEN)
        assert (order.rated, order.rating, order.review) == (True, 5, "Great")
        assert event_bus.published[-1].event_type == "OrderRatedEvent"

        with pytest.raises(InvalidOperationError):
            await service.rate_order(created.id, 4, None, CUSTOMER_TOKEN)

    @pytest.mark.asyncio
    async def test_rate_before_delivery(self, service, make_request):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order

        with pytest.raises(InvalidOperationError):
            await service.rate_order(created.id, 5, None, CUSTOMER_TOKEN)

    @pytest.mark.asyncio
    async def test_rating_range(self, service, make_request):
        created = (await service.create_order(make_request(), CUSTOMER_TOKEN)).order
        await _deliver(service, created.id)

        with pytest.raises(InvalidArgumentError):
            await service.rate_order(created.id, 6, None, CUSTOMER_TOKEN)
