"""Application service for Order operations."""

from datetime import datetime, timezone
import logging
import math
from typing import Awaitable, Callable, Optional, TypeVar

from order_core.application.dtos.order_dto import (
    AddressDTO,
    ContactInfoDTO,
    CreateOrderRequest,
    CreateOrderResult,
    OrderDTO,
    OrderItemDTO,
    OrderListDTO,
)
from order_core.application.interfaces import (
    Actor,
    IAuthorizer,
    ICatalogSource,
    INotifier,
    RestaurantInfo,
)
from order_core.application.services.notification_dispatcher import NotificationDispatcher
from order_core.application.services.order_number_generator import OrderNumberGenerator
from order_core.application.services.pricing_service import PricingService
from order_core.domain.entities.order import (
    ContactInfo,
    DeliveryAddress,
    Order,
    OrderDraft,
    OrderItem,
)
from order_core.domain.enums import OrderStatus, PaymentStatus
from order_core.domain.event_bus import EventBus
from order_core.domain.exceptions import (
    ConcurrentUpdateError,
    ConflictError,
    DependencyFailureError,
    InvalidArgumentError,
    InvalidOperationError,
    NotFoundError,
    OrderCoreError,
    PermissionDeniedError,
    ValidationError,
)
from order_core.domain.repositories import OrderFilter, OrderRepository, OrderSort
from order_core.domain.state_machine import CancellationPolicy
from order_core.domain.value_objects import Money
from order_core.settings.modules.order_settings import OrderSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_PAGE_SIZE = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderApplicationService:
    """
    Application service for orchestrating order operations.

    Responsibilities:
    - Resolve the caller and enforce ownership / role checks
    - Price orders server-side and persist them under a unique number
    - Drive status changes with compare-and-set writes
    - Publish domain events and schedule notifications after persistence
    - Transform between DTOs and domain entities
    """

    def __init__(
        self,
        repository: OrderRepository,
        notifier: INotifier,
        authorizer: IAuthorizer,
        catalog: ICatalogSource,
        settings: Optional[OrderSettings] = None,
        event_bus: Optional[EventBus] = None,
        number_generator: Optional[OrderNumberGenerator] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize order application service.

        Args:
            repository: Order persistence
            notifier: Customer / admin notifications
            authorizer: Credential resolution
            catalog: Restaurant, menu and coupon lookups
            settings: Pricing and lifecycle settings (default: from environment)
            event_bus: Optional bus receiving domain events after each write
            number_generator: Order number source (default: wall clock + random)
            dispatcher: Notification runner (default: built from notifier)
            clock: Time source for lifecycle timestamps
        """
        if settings is None:
            from order_core.settings import get_app_settings
            settings = get_app_settings().orders

        self._repository = repository
        self._authorizer = authorizer
        self._catalog = catalog
        self._settings = settings
        self._event_bus = event_bus
        self._clock = clock or _utcnow
        self._pricing = PricingService(settings)
        self._number_generator = number_generator or OrderNumberGenerator(
            clock=self._clock,
            max_attempts=settings.order_number_max_attempts,
        )
        self._dispatcher = dispatcher or NotificationDispatcher(
            notifier,
            timeout_seconds=settings.notification_timeout_seconds,
        )
        self._policy = CancellationPolicy.from_flag(settings.allow_cancel_while_preparing)

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._dispatcher

    @property
    def cancellation_policy(self) -> CancellationPolicy:
        return self._policy

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    async def create_order(
        self,
        request: CreateOrderRequest,
        credential: Optional[str] = None,
    ) -> CreateOrderResult:
        """Create a new order.

        Args:
            request: CreateOrderRequest DTO
            credential: Caller credential, None for guest checkout

        Returns:
            CreateOrderResult with the persisted order

        Raises:
            ValidationError: Invalid cart, address, contact, payment or coupon
            NotFoundError: Unknown restaurant
            ResourceExhaustedError: No unique order number could be allocated
        """
        actor = await self._resolve_actor(credential)

        # 1. Validate input before touching the catalog
        draft = self._request_to_draft(request, actor)
        validated = Order.validate_draft(draft)

        # 2. Authoritative restaurant data and prices
        restaurant = await self._call_catalog(
            "get_restaurant", lambda: self._catalog.get_restaurant(draft.restaurant_id)
        )
        if restaurant is None:
            raise NotFoundError("Restaurant", draft.restaurant_id)
        if not restaurant.is_active:
            raise InvalidOperationError(f"Restaurant {restaurant.id} is not accepting orders")
        self._apply_restaurant(draft, restaurant)

        menu_prices = await self._call_catalog(
            "get_menu_prices", lambda: self._catalog.get_menu_prices(restaurant.id)
        )
        draft.items = self._pricing.apply_menu_prices(draft.items, menu_prices or {})

        coupon = None
        if draft.coupon_code:
            coupon = await self._call_catalog(
                "find_coupon", lambda: self._catalog.find_coupon(draft.coupon_code)
            )
            if coupon is None:
                raise ValidationError(
                    f"Unknown coupon: {draft.coupon_code}",
                    field="coupon_code",
                    code="coupon.invalid",
                )

        # 3. Price and place
        now = self._clock()
        charges = self._pricing.compute_charges(
            draft.items,
            validated.delivery_type,
            restaurant,
            tip=Money(request.tip, self._settings.currency),
            coupon=coupon,
            now=now,
        )
        order = Order.place(
            draft,
            charges,
            now=now,
            estimated_delivery=self._pricing.estimated_delivery(now, restaurant),
        )
        mismatch = self._client_totals_differ(order, request)

        # 4. Persist under a unique order number
        saved = await self._number_generator.create_with_retry(
            self._repository,
            order,
            max_attempts=self._settings.order_number_max_attempts,
        )
        saved.record_placed(actor_id=actor.id)
        logger.info(
            f"Order {saved.order_number} placed at {saved.restaurant_id} "
            f"for {saved.total_amount} ({saved.status.value})"
        )
        await self._publish_events(saved)

        # 5. Side effects; failure never undoes the order
        scheduled = self._dispatcher.schedule(saved)

        return CreateOrderResult(
            order=self._order_to_dto(saved),
            notifications_scheduled=scheduled,
            client_totals_mismatch=mismatch,
        )

    def _request_to_draft(self, request: CreateOrderRequest, actor: Actor) -> OrderDraft:
        currency = self._settings.currency
        items = [
            OrderItem(
                name=item.name,
                unit_price=Money(item.unit_price, currency),
                quantity=item.quantity,
                image_ref=item.image_ref,
                special_instructions=item.special_instructions,
                menu_item_id=item.menu_item_id,
            )
            for item in request.items
        ]
        address = None
        if request.delivery_address is not None:
            address = DeliveryAddress(**request.delivery_address.model_dump())
        contact = None
        if request.contact_info is not None:
            contact = ContactInfo(**request.contact_info.model_dump())

        return OrderDraft(
            restaurant_id=request.restaurant_id,
            restaurant_name=request.restaurant_name,
            items=items,
            contact_info=contact,
            payment_method=request.payment_method,
            delivery_type=request.delivery_type,
            delivery_address=address,
            user_id=None if actor.is_guest else actor.id,
            user_email=actor.email,
            restaurant_image=request.restaurant_image,
            special_instructions=request.special_instructions,
            coupon_code=(request.coupon_code or "").strip().upper() or None,
            currency=currency,
        )

    @staticmethod
    def _apply_restaurant(draft: OrderDraft, restaurant: RestaurantInfo) -> None:
        if restaurant.name:
            draft.restaurant_name = restaurant.name
        if restaurant.image and not draft.restaurant_image:
            draft.restaurant_image = restaurant.image

    def _client_totals_differ(self, order: Order, request: CreateOrderRequest) -> bool:
        """Compare client-displayed totals with ours; log and flag, never block."""
        client = request.client_totals
        if client is None:
            return False

        tolerance = Money(self._settings.totals_tolerance, order.currency)
        mismatched = []
        for name in ("subtotal", "delivery_fee", "tax", "total_amount"):
            client_value = getattr(client, name)
            if client_value is None:
                continue
            ours = getattr(order, name)
            if (ours - Money(client_value, order.currency)).abs() > tolerance:
                mismatched.append(f"{name}: client {client_value} vs server {ours.amount}")

        if mismatched:
            logger.warning(
                f"Client totals differ from server totals for restaurant "
                f"{order.restaurant_id}: {'; '.join(mismatched)}"
            )
        return bool(mismatched)

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_order(self, order_id: str, credential: Optional[str]) -> OrderDTO:
        """Get order by ID (owner or admin).

        Raises:
            NotFoundError: Unknown order
            PermissionDeniedError: Caller is neither owner nor admin
        """
        actor = await self._resolve_actor(credential)
        order = await self._repository.find_by_id(order_id)
        if not (actor.is_admin or order.is_owned_by(actor.id)):
            raise PermissionDeniedError(f"Not allowed to view order {order_id}")
        return self._order_to_dto(order)

    async def list_my_orders(
        self,
        credential: Optional[str],
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> OrderListDTO:
        """List the caller's own orders, newest first."""
        actor = await self._resolve_actor(credential)
        self._require_authenticated(actor, "list orders")
        order_filter = OrderFilter(user_id=actor.id, status=self._parse_status(status))
        return await self._list(order_filter, page, limit)

    async def list_all_orders(
        self,
        credential: Optional[str],
        status: Optional[str] = None,
        restaurant_id: Optional[str] = None,
        user_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> OrderListDTO:
        """List every order (admin only), newest first."""
        actor = await self._resolve_actor(credential)
        self._require_admin(actor, "list all orders")
        order_filter = OrderFilter(
            user_id=user_id,
            status=self._parse_status(status),
            restaurant_id=restaurant_id,
        )
        return await self._list(order_filter, page, limit)

    async def _list(self, order_filter: OrderFilter, page: int, limit: int) -> OrderListDTO:
        if page < 1:
            raise InvalidArgumentError(f"page must be >= 1 (got {page})", field="page")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidArgumentError(
                f"limit must be between 1 and {MAX_PAGE_SIZE} (got {limit})", field="limit"
            )
        result = await self._repository.find(
            order_filter, OrderSort(field="created_at", descending=True), page, limit
        )
        return OrderListDTO(
            orders=[self._order_to_dto(order) for order in result.items],
            total=result.total,
            pages=math.ceil(result.total / limit),
            current_page=page,
        )

    # =========================================================================
    # STATE CHANGES
    # =========================================================================

    async def update_status(
        self,
        order_id: str,
        new_status: str,
        credential: Optional[str],
    ) -> OrderDTO:
        """Move an order along the status machine (admin or restaurant owner).

        Uses compare-and-set writes. If another writer changes the status
        between our read and our write, the call fails with ConflictError
        instead of applying the transition to a state the caller never saw.

        Raises:
            InvalidArgumentError: Unknown status
            InvalidTransitionError: Edge not allowed
            PermissionDeniedError: Caller may not manage this order
            ConflictError: Concurrent modification
        """
        actor = await self._resolve_actor(credential)
        target = self._parse_status(new_status, required=True)

        order = await self._repository.find_by_id(order_id)
        await self._require_manager(actor, order)
        if order.status == target:
            return self._order_to_dto(order)

        observed = order.status
        now = self._clock()
        attempts = self._settings.status_update_max_attempts

        for attempt in range(1, attempts + 1):
            if order.status == target:
                # Another writer already got the order where this caller wants it
                return self._order_to_dto(order)
            if order.status != observed:
                raise ConflictError(
                    f"Order {order_id} changed from '{observed.value}' to "
                    f"'{order.status.value}' while moving it to '{target.value}'",
                    current_status=order.status.value,
                    target_status=target.value,
                )
            try:
                updated = await self._repository.update(
                    order_id,
                    lambda o: o.transition_to(target, now=now, policy=self._policy, actor_id=actor.id),
                    expected_version=order.version,
                )
            except ConcurrentUpdateError:
                logger.info(
                    f"Concurrent update on order {order_id} (attempt {attempt}/{attempts}), re-reading"
                )
                order = await self._repository.find_by_id(order_id)
                continue

            logger.info(f"Order {updated.order_number}: {observed.value} -> {target.value}")
            await self._publish_events(updated)
            return self._order_to_dto(updated)

        raise ConflictError(
            f"Order {order_id} kept changing; gave up after {attempts} attempts",
            current_status=order.status.value,
            target_status=target.value,
        )

    async def update_payment_status(
        self,
        order_id: str,
        new_status: str,
        credential: Optional[str],
    ) -> OrderDTO:
        """Set the payment status (admin only)."""
        actor = await self._resolve_actor(credential)
        self._require_admin(actor, "update payment status")
        try:
            target = PaymentStatus(new_status)
        except ValueError:
            raise InvalidArgumentError(f"Unknown payment status '{new_status}'", field="payment_status")

        now = self._clock()
        updated = await self._update_with_retry(
            order_id,
            lambda o: o.set_payment_status(target, now=now, actor_id=actor.id),
        )
        logger.info(f"Order {updated.order_number}: payment status {updated.payment_status.value}")
        return self._order_to_dto(updated)

    async def cancel_order(
        self,
        order_id: str,
        reason: Optional[str],
        credential: Optional[str],
    ) -> OrderDTO:
        """Cancel an order (owner only).

        Raises:
            InvalidTransitionError: Order is past the cancellable stages
        """
        actor = await self._resolve_actor(credential)
        self._require_authenticated(actor, "cancel orders")
        now = self._clock()
        updated = await self._update_with_retry(
            order_id,
            lambda o: o.cancel(reason, now=now, policy=self._policy, actor_id=actor.id),
            owner=actor,
        )
        logger.info(f"Order {updated.order_number} cancelled: {updated.cancellation_reason}")
        return self._order_to_dto(updated)

    async def rate_order(
        self,
        order_id: str,
        rating: int,
        review: Optional[str],
        credential: Optional[str],
    ) -> OrderDTO:
        """Rate a delivered order once (owner only)."""
        actor = await self._resolve_actor(credential)
        self._require_authenticated(actor, "rate orders")
        now = self._clock()
        updated = await self._update_with_retry(
            order_id,
            lambda o: o.rate(rating, review, now=now, actor_id=actor.id),
            owner=actor,
        )
        logger.info(f"Order {updated.order_number} rated {rating}/5")
        return self._order_to_dto(updated)

    async def _update_with_retry(
        self,
        order_id: str,
        mutator: Callable[[Order], object],
        owner: Optional[Actor] = None,
    ) -> Order:
        """Read-mutate-write with compare-and-set; the mutator re-validates on every attempt."""
        attempts = self._settings.status_update_max_attempts
        for attempt in range(1, attempts + 1):
            order = await self._repository.find_by_id(order_id)
            if owner is not None and not order.is_owned_by(owner.id):
                raise PermissionDeniedError(f"Order {order_id} belongs to another user")
            try:
                updated = await self._repository.update(
                    order_id, mutator, expected_version=order.version
                )
            except ConcurrentUpdateError:
                logger.info(
                    f"Concurrent update on order {order_id} (attempt {attempt}/{attempts}), retrying"
                )
                continue
            await self._publish_events(updated)
            return updated

        raise ConflictError(
            f"Order {order_id} kept changing; gave up after {attempts} attempts",
            current_status=order.status.value,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _resolve_actor(self, credential: Optional[str]) -> Actor:
        if credential is None:
            return Actor.guest()
        try:
            actor = await self._authorizer.resolve(credential)
        except OrderCoreError:
            raise
        except Exception as e:
            raise DependencyFailureError("authorizer", f"Could not resolve credential: {e}") from e
        if actor is None:
            raise PermissionDeniedError("Invalid or expired credential")
        return actor

    async def _call_catalog(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await call()
        except OrderCoreError:
            raise
        except Exception as e:
            raise DependencyFailureError("catalog", f"Catalog {operation} failed: {e}") from e

    @staticmethod
    def _require_authenticated(actor: Actor, action: str) -> None:
        if actor.is_guest:
            raise PermissionDeniedError(f"Sign in to {action}")

    @staticmethod
    def _require_admin(actor: Actor, action: str) -> None:
        if not actor.is_admin:
            raise PermissionDeniedError(f"Admin role required to {action}")

    async def _require_manager(self, actor: Actor, order: Order) -> None:
        """Admins manage every order; restaurant owners manage their restaurant's."""
        if actor.is_admin:
            return
        if not actor.is_guest:
            restaurant = await self._call_catalog(
                "get_restaurant", lambda: self._catalog.get_restaurant(order.restaurant_id)
            )
            if restaurant is not None and restaurant.owner_id == actor.id:
                return
        raise PermissionDeniedError(f"Not allowed to manage order {order.id}")

    @staticmethod
    def _parse_status(value: Optional[str], required: bool = False) -> Optional[OrderStatus]:
        if value is None and not required:
            return None
        try:
            return OrderStatus(value)
        except ValueError:
            raise InvalidArgumentError(f"Unknown order status '{value}'", field="status")

    async def _publish_events(self, order: Order) -> None:
        events = order.pull_domain_events()
        if not events or self._event_bus is None:
            return
        try:
            await self._event_bus.publish_all(events)
        except Exception as e:
            # The write is already committed; subscribers can re-sync from the repository
            logger.error(
                f"Failed to publish {len(events)} events for order {order.order_number}: {e}",
                exc_info=True,
            )

    def _order_to_dto(self, order: Order) -> OrderDTO:
        """Transform Order domain entity to OrderDTO."""
        items = [
            OrderItemDTO(
                name=item.name,
                unit_price=item.unit_price.amount,
                quantity=item.quantity,
                item_total=item.item_total.amount,
                image_ref=item.image_ref,
                special_instructions=item.special_instructions,
                menu_item_id=item.menu_item_id,
            )
            for item in order.items
        ]
        address = order.delivery_address
        contact = order.contact_info

        return OrderDTO(
            id=order.id,
            order_number=str(order.order_number),
            user_id=order.user_id,
            user_email=order.user_email,
            restaurant_id=order.restaurant_id,
            restaurant_name=order.restaurant_name,
            restaurant_image=order.restaurant_image,
            items=items,
            delivery_type=order.delivery_type.value,
            delivery_address=(
                AddressDTO(
                    street=address.street,
                    city=address.city,
                    state=address.state,
                    zip_code=address.zip_code,
                    area=address.area,
                    instructions=address.instructions,
                )
                if address is not None
                else None
            ),
            contact_info=ContactInfoDTO(
                first_name=contact.first_name,
                last_name=contact.last_name,
                phone=contact.phone,
                email=contact.email,
            ),
            special_instructions=order.special_instructions,
            coupon_code=order.coupon_code,
            currency=order.currency,
            subtotal=order.subtotal.amount,
            delivery_fee=order.delivery_fee.amount,
            tax=order.tax.amount,
            service_fee=order.service_fee.amount,
            tip=order.tip.amount,
            discount_amount=order.discount_amount.amount,
            total_amount=order.total_amount.amount,
            status=order.status.value,
            payment_method=order.payment_method.value,
            payment_status=order.payment_status.value,
            created_at=order.created_at,
            updated_at=order.updated_at,
            estimated_delivery=order.estimated_delivery,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
            cancellation_reason=order.cancellation_reason,
            rated=order.rated,
            rating=order.rating,
            review=order.review,
            version=order.version,
        )
