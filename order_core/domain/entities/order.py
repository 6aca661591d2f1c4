"""
Order aggregate root.

Totals and lifecycle timestamps are computed here, by explicit methods,
before anything is persisted. Repositories merely store what they get.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, Optional

from ..enums import DeliveryType, OrderStatus, PaymentMethod, PaymentStatus
from ..events.base import DomainEvent
from ..events.order_events import (
    OrderCancelledEvent,
    OrderPlacedEvent,
    OrderRatedEvent,
    OrderStatusChangedEvent,
    OrderUpdatedEvent,
    PaymentStatusChangedEvent,
)
from ..exceptions import (
    InvalidArgumentError,
    InvalidOperationError,
    InvalidTransitionError,
    ValidationError,
)
from ..state_machine import DEFAULT_CANCELLATION_POLICY, CancellationPolicy, can_transition
from ..value_objects import Money, OrderCharges, OrderNumber, OrderTotals, compute_totals

DEFAULT_CANCELLATION_REASON = "Cancelled by user"
MIN_RATING = 1
MAX_RATING = 5

EMAIL_SOURCE_CONTACT = "contact_info"
EMAIL_SOURCE_USER = "user_email"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


@dataclass
class OrderItem:
    """Individual line item within an order."""
    name: str
    unit_price: Money
    quantity: int
    image_ref: str = ""
    special_instructions: str = ""
    menu_item_id: Optional[str] = None

    @property
    def item_total(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class DeliveryAddress:
    street: str
    city: str
    state: str
    zip_code: str
    area: str = ""
    instructions: str = ""

    REQUIRED_FIELDS = ("street", "city", "state", "zip_code")

    def missing_fields(self) -> List[str]:
        return [name for name in self.REQUIRED_FIELDS if _blank(getattr(self, name))]


@dataclass(frozen=True)
class ContactInfo:
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None

    def missing_fields(self) -> List[str]:
        return [
            name for name in ("first_name", "last_name", "phone")
            if _blank(getattr(self, name))
        ]


@dataclass
class OrderDraft:
    """
    Unvalidated checkout input, already translated into domain types.

    Enumerated values are kept as raw strings so that validation can report
    them in its fixed order.
    """
    restaurant_id: Optional[str]
    restaurant_name: Optional[str]
    items: List[OrderItem]
    contact_info: Optional[ContactInfo]
    payment_method: Optional[str]
    delivery_type: Optional[str] = DeliveryType.DELIVERY.value
    delivery_address: Optional[DeliveryAddress] = None
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    restaurant_image: str = ""
    special_instructions: str = ""
    coupon_code: Optional[str] = None
    currency: str = "USD"


@dataclass(frozen=True)
class ValidatedDraft:
    """Parsed choices produced by Order.validate_draft."""
    delivery_type: DeliveryType
    payment_method: PaymentMethod
    user_email: str
    notification_email_source: str


def _parse_enum(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidArgumentError(
            f"Unknown {field_name} '{value}' (expected one of: {allowed})",
            field=field_name,
        )


@dataclass
class Order:
    """
    Order aggregate root.

    Invariant:
        total_amount == subtotal + delivery_fee + tax + service_fee + tip - discount_amount
    """
    user_email: str
    restaurant_id: str
    restaurant_name: str
    items: List[OrderItem]
    contact_info: ContactInfo
    payment_method: PaymentMethod
    delivery_type: DeliveryType = DeliveryType.DELIVERY
    delivery_address: Optional[DeliveryAddress] = None

    # Identity
    id: Optional[str] = None
    order_number: Optional[OrderNumber] = None
    user_id: Optional[str] = None

    restaurant_image: str = ""
    special_instructions: str = ""
    coupon_code: Optional[str] = None
    notification_email_source: str = EMAIL_SOURCE_CONTACT
    currency: str = "USD"

    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING

    # Money
    subtotal: Money = field(default_factory=Money.zero)
    delivery_fee: Money = field(default_factory=Money.zero)
    tax: Money = field(default_factory=Money.zero)
    service_fee: Money = field(default_factory=Money.zero)
    tip: Money = field(default_factory=Money.zero)
    discount_amount: Money = field(default_factory=Money.zero)
    total_amount: Money = field(default_factory=Money.zero)

    # Timestamps
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    estimated_delivery: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    # Post-delivery feedback
    rated: bool = False
    rating: Optional[int] = None
    review: Optional[str] = None

    # Optimistic concurrency token, owned by the repository
    version: int = 0

    _domain_events: List[DomainEvent] = field(
        default_factory=list, init=False, repr=False, compare=False
    )

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @staticmethod
    def validate_draft(draft: OrderDraft) -> ValidatedDraft:
        """
        Validate checkout input, failing fast on the first violation.

        Order of checks: items, restaurant, delivery, contact, payment method.

        Raises:
            ValidationError: With a field-group specific code
        """
        # 1. Items
        if not draft.items:
            raise ValidationError("No order items provided", field="items", code="items.empty")
        for index, item in enumerate(draft.items):
            if _blank(item.name):
                raise ValidationError(
                    f"Item #{index + 1} has no name",
                    field=f"items[{index}].name",
                    code="items.name",
                )
            if not isinstance(item.quantity, int) or isinstance(item.quantity, bool) or item.quantity < 1:
                raise ValidationError(
                    f"Item '{item.name}' must have a quantity of at least 1 (got {item.quantity})",
                    field=f"items[{index}].quantity",
                    code="items.quantity",
                )
            if item.unit_price.is_negative():
                raise ValidationError(
                    f"Item '{item.name}' has a negative price ({item.unit_price})",
                    field=f"items[{index}].unit_price",
                    code="items.unit_price",
                )

        # 2. Restaurant
        if _blank(draft.restaurant_id) or _blank(draft.restaurant_name):
            raise ValidationError(
                "Restaurant information is required",
                field="restaurant",
                code="restaurant.missing",
            )

        # 3. Delivery
        try:
            delivery_type = _parse_enum(DeliveryType, draft.delivery_type, "delivery_type")
        except InvalidArgumentError as exc:
            raise ValidationError(exc.message, field="delivery_type", code="delivery_type.invalid")
        if delivery_type is DeliveryType.DELIVERY:
            if draft.delivery_address is None:
                raise ValidationError(
                    "Delivery address is required for delivery orders",
                    field="delivery_address",
                    code="delivery_address.missing",
                )
            missing = draft.delivery_address.missing_fields()
            if missing:
                raise ValidationError(
                    f"Delivery address is missing: {', '.join(missing)}",
                    field="delivery_address",
                    code="delivery_address.incomplete",
                    details={"missing": missing},
                )

        # 4. Contact
        if draft.contact_info is None or draft.contact_info.missing_fields():
            missing = draft.contact_info.missing_fields() if draft.contact_info else ["contact_info"]
            raise ValidationError(
                f"Contact information is incomplete: {', '.join(missing)}",
                field="contact_info",
                code="contact_info.missing",
                details={"missing": missing},
            )
        contact_email = draft.contact_info.email
        if not _blank(contact_email):
            notification_source = EMAIL_SOURCE_CONTACT
            notification_email = contact_email
        elif not _blank(draft.user_email):
            notification_source = EMAIL_SOURCE_USER
            notification_email = draft.user_email
        else:
            raise ValidationError(
                "An email address is required (contact email or user email)",
                field="contact_info.email",
                code="contact_info.email",
            )
        if "@" not in notification_email:
            raise ValidationError(
                f"Invalid email address: {notification_email}",
                field="contact_info.email",
                code="contact_info.email",
            )

        # 5. Payment method
        try:
            payment_method = _parse_enum(PaymentMethod, draft.payment_method, "payment_method")
        except InvalidArgumentError as exc:
            raise ValidationError(exc.message, field="payment_method", code="payment_method.invalid")

        return ValidatedDraft(
            delivery_type=delivery_type,
            payment_method=payment_method,
            user_email=draft.user_email if not _blank(draft.user_email) else contact_email,
            notification_email_source=notification_source,
        )

    @classmethod
    def place(
        cls,
        draft: OrderDraft,
        charges: OrderCharges,
        *,
        now: Optional[datetime] = None,
        estimated_delivery: Optional[datetime] = None,
    ) -> 'Order':
        """
        Factory method for a new order at checkout.

        Cash orders start pending; pre-paid orders start confirmed with a
        completed payment.

        Raises:
            ValidationError: If the draft or the charges are invalid
        """
        validated = cls.validate_draft(draft)
        now = now or _utcnow()

        totals = compute_totals((item.item_total for item in draft.items), charges, draft.currency)

        prepaid = validated.payment_method.is_prepaid
        order = cls(
            user_email=validated.user_email,
            restaurant_id=draft.restaurant_id,
            restaurant_name=draft.restaurant_name,
            items=list(draft.items),
            contact_info=draft.contact_info,
            payment_method=validated.payment_method,
            delivery_type=validated.delivery_type,
            delivery_address=(
                draft.delivery_address if validated.delivery_type is DeliveryType.DELIVERY else None
            ),
            user_id=draft.user_id,
            restaurant_image=draft.restaurant_image or "",
            special_instructions=draft.special_instructions or "",
            coupon_code=draft.coupon_code,
            notification_email_source=validated.notification_email_source,
            currency=draft.currency,
            status=OrderStatus.CONFIRMED if prepaid else OrderStatus.PENDING,
            payment_status=PaymentStatus.COMPLETED if prepaid else PaymentStatus.PENDING,
            created_at=now,
            updated_at=now,
            estimated_delivery=estimated_delivery,
        )
        order._apply_totals(totals)
        return order

    def assign_order_number(self, order_number: OrderNumber) -> None:
        """Set the order number; only possible before the order is persisted."""
        if self.id is not None:
            raise InvalidOperationError(
                f"Order number of persisted order {self.id} is immutable"
            )
        self.order_number = order_number

    def record_placed(self, actor_id: Optional[str] = None) -> None:
        """Record that the order was persisted at checkout."""
        self._record_event(
            OrderPlacedEvent(
                order_number=str(self.order_number),
                restaurant_id=self.restaurant_id,
                user_email=self.user_email,
                total_amount=str(self.total_amount.amount),
                currency=self.currency,
                status=self.status.value,
                actor_id=actor_id,
            )
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def notification_email(self) -> str:
        if self.notification_email_source == EMAIL_SOURCE_CONTACT and self.contact_info.email:
            return self.contact_info.email
        return self.user_email

    @property
    def charges(self) -> OrderCharges:
        return OrderCharges(
            delivery_fee=self.delivery_fee,
            tax=self.tax,
            service_fee=self.service_fee,
            tip=self.tip,
            discount_amount=self.discount_amount,
        )

    @property
    def totals(self) -> OrderTotals:
        return OrderTotals(
            subtotal=self.subtotal,
            delivery_fee=self.delivery_fee,
            tax=self.tax,
            service_fee=self.service_fee,
            tip=self.tip,
            discount_amount=self.discount_amount,
            total_amount=self.total_amount,
        )

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and self.user_id is not None and self.user_id == user_id

    # =========================================================================
    # TOTALS
    # =========================================================================

    def _apply_totals(self, totals: OrderTotals) -> None:
        self.subtotal = totals.subtotal
        self.delivery_fee = totals.delivery_fee
        self.tax = totals.tax
        self.service_fee = totals.service_fee
        self.tip = totals.tip
        self.discount_amount = totals.discount_amount
        self.total_amount = totals.total_amount

    def _recalculate_totals(self, charges: Optional[OrderCharges] = None) -> None:
        """Internal: recompute every monetary field from items and charges."""
        totals = compute_totals(
            (item.item_total for item in self.items),
            charges or self.charges,
            self.currency,
        )
        self._apply_totals(totals)

    def add_item(self, item: OrderItem, *, now: Optional[datetime] = None) -> None:
        """Add item and recalculate order totals."""
        if self.status.is_terminal:
            raise InvalidOperationError(f"Cannot add items to a {self.status.value} order")
        if _blank(item.name) or item.quantity < 1 or item.unit_price.is_negative():
            raise ValidationError(f"Invalid item: {item.name}", field="items", code="items.invalid")
        self.items.append(item)
        self._recalculate_totals()
        self._touch(now)
        self._record_update({"items": "added"})

    def update_charges(
        self,
        *,
        now: Optional[datetime] = None,
        delivery_fee: Optional[Money] = None,
        tax: Optional[Money] = None,
        service_fee: Optional[Money] = None,
        tip: Optional[Money] = None,
        discount_amount: Optional[Money] = None,
    ) -> bool:
        """
        Change one or more charges and recompute totals.

        Returns:
            False if nothing actually changed (totals are left untouched)
        """
        changes = {
            name: value
            for name, value in (
                ("delivery_fee", delivery_fee),
                ("tax", tax),
                ("service_fee", service_fee),
                ("tip", tip),
                ("discount_amount", discount_amount),
            )
            if value is not None and value != getattr(self, name)
        }
        if not changes:
            return False

        # Compute before assigning so a rejected change leaves the order intact
        self._recalculate_totals(replace(self.charges, **changes))
        self._touch(now)
        self._record_update({name: str(value.amount) for name, value in changes.items()})
        return True

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def transition_to(
        self,
        new_status,
        *,
        now: Optional[datetime] = None,
        policy: CancellationPolicy = DEFAULT_CANCELLATION_POLICY,
        actor_id: Optional[str] = None,
    ) -> bool:
        """
        Move the order along the status state machine.

        Returns:
            False for a same-state no-op, True otherwise

        Raises:
            InvalidArgumentError: Unknown status value
            InvalidTransitionError: Edge not allowed from the current status
        """
        target = _parse_enum(OrderStatus, new_status, "status")
        if target == self.status:
            return False
        if not can_transition(self.status, target, policy):
            raise InvalidTransitionError(self.status.value, target.value)

        previous = self.status
        now = now or _utcnow()
        self.status = target
        self._stamp_status_timestamps(now)
        self._touch(now)
        self._record_event(
            OrderStatusChangedEvent(
                order_number=str(self.order_number),
                previous_status=previous.value,
                new_status=target.value,
                actor_id=actor_id,
            )
        )
        return True

    def cancel(
        self,
        reason: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
        policy: CancellationPolicy = DEFAULT_CANCELLATION_POLICY,
        actor_id: Optional[str] = None,
    ) -> bool:
        """
        Cancel the order on behalf of the customer.

        Returns:
            False if the order was already cancelled

        Raises:
            InvalidTransitionError: If the policy does not allow cancelling
                from the current status
        """
        if self.status is OrderStatus.CANCELLED:
            return False
        if not policy.can_cancel_from(self.status):
            raise InvalidTransitionError(
                self.status.value,
                OrderStatus.CANCELLED.value,
                f"Order cannot be cancelled at this stage ({self.status.value})",
            )

        previous = self.status
        now = now or _utcnow()
        self.status = OrderStatus.CANCELLED
        self.cancellation_reason = reason or DEFAULT_CANCELLATION_REASON
        self._stamp_status_timestamps(now)
        self._touch(now)
        self._record_event(
            OrderCancelledEvent(
                order_number=str(self.order_number),
                previous_status=previous.value,
                reason=self.cancellation_reason,
                actor_id=actor_id,
            )
        )
        return True

    def _stamp_status_timestamps(self, now: datetime) -> None:
        # Each is set exactly once, on the first entry into the status
        if self.status is OrderStatus.DELIVERED and self.delivered_at is None:
            self.delivered_at = now
        elif self.status is OrderStatus.CANCELLED and self.cancelled_at is None:
            self.cancelled_at = now

    def rate(
        self,
        rating: int,
        review: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
        actor_id: Optional[str] = None,
    ) -> None:
        """
        Leave post-delivery feedback. Only once, only for delivered orders.

        Raises:
            InvalidArgumentError: Rating outside 1-5
            InvalidOperationError: Order not delivered or already rated
        """
        if not isinstance(rating, int) or isinstance(rating, bool) or not MIN_RATING <= rating <= MAX_RATING:
            raise InvalidArgumentError(
                f"Rating must be an integer between {MIN_RATING} and {MAX_RATING} (got {rating})",
                field="rating",
            )
        if self.status is not OrderStatus.DELIVERED:
            raise InvalidOperationError(
                f"Can only rate delivered orders (status: {self.status.value})",
                details={"status": self.status.value},
            )
        if self.rated:
            raise InvalidOperationError("Order has already been rated")

        self.rated = True
        self.rating = rating
        self.review = review
        self._touch(now)
        self._record_event(
            OrderRatedEvent(
                order_number=str(self.order_number),
                rating=rating,
                review=review,
                actor_id=actor_id,
            )
        )

    def set_payment_status(
        self,
        new_status,
        *,
        now: Optional[datetime] = None,
        actor_id: Optional[str] = None,
    ) -> bool:
        """
        Assign the payment status. Independent of the delivery status and
        deliberately permissive: which payment moves are sane is decided by
        the service layer.
        """
        target = _parse_enum(PaymentStatus, new_status, "payment_status")
        if target == self.payment_status:
            return False

        previous = self.payment_status
        self.payment_status = target
        self._touch(now)
        self._record_event(
            PaymentStatusChangedEvent(
                order_number=str(self.order_number),
                previous_status=previous.value,
                new_status=target.value,
                actor_id=actor_id,
            )
        )
        return True

    def _touch(self, now: Optional[datetime]) -> None:
        self.updated_at = now or _utcnow()

    # =========================================================================
    # EVENT COLLECTION
    # =========================================================================

    def get_domain_events(self) -> List[DomainEvent]:
        return list(self._domain_events)

    def pull_domain_events(self) -> List[DomainEvent]:
        """Return collected events and clear them (after publishing)."""
        events = list(self._domain_events)
        self._domain_events.clear()
        return events

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    def _record_update(self, updated_fields: dict) -> None:
        self._record_event(
            OrderUpdatedEvent(
                order_number=str(self.order_number),
                updated_fields=updated_fields,
                total_amount=str(self.total_amount.amount),
            )
        )

    def _record_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)
