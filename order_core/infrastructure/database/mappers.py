"""Translation between the Order aggregate and its ORM rows."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from order_core.domain.entities.order import ContactInfo, DeliveryAddress, Order, OrderItem
from order_core.domain.enums import DeliveryType, OrderStatus, PaymentMethod, PaymentStatus
from order_core.domain.value_objects import Money, OrderNumber
from order_core.infrastructure.database.models import OrderItemModel, OrderModel


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite returns naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def order_columns(order: Order) -> Dict[str, Any]:
    """Every scalar column of ``orders`` except id and version."""
    address = order.delivery_address
    contact = order.contact_info
    return {
        "order_number": str(order.order_number),
        "user_id": order.user_id,
        "user_email": order.user_email,
        "restaurant_id": order.restaurant_id,
        "restaurant_name": order.restaurant_name,
        "restaurant_image": order.restaurant_image,
        "delivery_type": order.delivery_type.value,
        "delivery_address": (
            {
                "street": address.street,
                "city": address.city,
                "state": address.state,
                "zip_code": address.zip_code,
                "area": address.area,
                "instructions": address.instructions,
            }
            if address is not None
            else None
        ),
        "contact_info": {
            "first_name": contact.first_name,
            "last_name": contact.last_name,
            "phone": contact.phone,
            "email": contact.email,
        },
        "notification_email_source": order.notification_email_source,
        "special_instructions": order.special_instructions,
        "coupon_code": order.coupon_code,
        "currency": order.currency,
        "subtotal_minor": order.subtotal.to_minor_units(),
        "delivery_fee_minor": order.delivery_fee.to_minor_units(),
        "tax_minor": order.tax.to_minor_units(),
        "service_fee_minor": order.service_fee.to_minor_units(),
        "tip_minor": order.tip.to_minor_units(),
        "discount_minor": order.discount_amount.to_minor_units(),
        "total_minor": order.total_amount.to_minor_units(),
        "status": order.status.value,
        "payment_method": order.payment_method.value,
        "payment_status": order.payment_status.value,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "estimated_delivery": order.estimated_delivery,
        "delivered_at": order.delivered_at,
        "cancelled_at": order.cancelled_at,
        "cancellation_reason": order.cancellation_reason,
        "rated": order.rated,
        "rating": order.rating,
        "review": order.review,
    }


def item_models(order: Order, order_id: str) -> List[OrderItemModel]:
    return [
        OrderItemModel(
            order_id=order_id,
            position=position,
            name=item.name,
            unit_price_minor=item.unit_price.to_minor_units(),
            quantity=item.quantity,
            image_ref=item.image_ref,
            special_instructions=item.special_instructions,
            menu_item_id=item.menu_item_id,
        )
        for position, item in enumerate(order.items)
    ]


def to_model(order: Order, order_id: str, version: int) -> OrderModel:
    model = OrderModel(id=order_id, version=version, **order_columns(order))
    model.items = item_models(order, order_id)
    return model


def to_domain(model: OrderModel) -> Order:
    """Convert OrderModel to domain entity."""
    currency = model.currency

    def money(minor_units: int) -> Money:
        return Money.from_minor_units(minor_units, currency)

    address = model.delivery_address
    return Order(
        id=model.id,
        order_number=OrderNumber(model.order_number),
        user_id=model.user_id,
        user_email=model.user_email,
        restaurant_id=model.restaurant_id,
        restaurant_name=model.restaurant_name,
        restaurant_image=model.restaurant_image or "",
        items=[
            OrderItem(
                name=item.name,
                unit_price=money(item.unit_price_minor),
                quantity=item.quantity,
                image_ref=item.image_ref or "",
                special_instructions=item.special_instructions or "",
                menu_item_id=item.menu_item_id,
            )
            for item in model.items
        ],
        delivery_type=DeliveryType(model.delivery_type),
        delivery_address=DeliveryAddress(**address) if address else None,
        contact_info=ContactInfo(**model.contact_info),
        payment_method=PaymentMethod(model.payment_method),
        notification_email_source=model.notification_email_source,
        special_instructions=model.special_instructions or "",
        coupon_code=model.coupon_code,
        currency=currency,
        status=OrderStatus(model.status),
        payment_status=PaymentStatus(model.payment_status),
        subtotal=money(model.subtotal_minor),
        delivery_fee=money(model.delivery_fee_minor),
        tax=money(model.tax_minor),
        service_fee=money(model.service_fee_minor),
        tip=money(model.tip_minor),
        discount_amount=money(model.discount_minor),
        total_amount=money(model.total_minor),
        created_at=_as_utc(model.created_at),
        updated_at=_as_utc(model.updated_at),
        estimated_delivery=_as_utc(model.estimated_delivery),
        delivered_at=_as_utc(model.delivered_at),
        cancelled_at=_as_utc(model.cancelled_at),
        cancellation_reason=model.cancellation_reason,
        rated=model.rated,
        rating=model.rating,
        review=model.review,
        version=model.version,
    )
