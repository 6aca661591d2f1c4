"""
Server-side pricing.

Client-supplied prices and totals are never trusted: menu prices come from
the catalog and every charge is derived from settings and restaurant data.
"""
from datetime import datetime, timedelta, timezone
import logging
from typing import List, Mapping, Optional

from order_core.application.interfaces import RestaurantInfo
from order_core.domain.entities.order import OrderItem
from order_core.domain.enums import DeliveryType
from order_core.domain.exceptions import ValidationError
from order_core.domain.value_objects import (
    Coupon,
    Money,
    OrderCharges,
    compute_subtotal,
)
from order_core.settings.modules.order_settings import OrderSettings

logger = logging.getLogger(__name__)


class PricingService:
    """Derives unit prices and charges for a new order."""

    def __init__(self, settings: OrderSettings):
        self._settings = settings

    @property
    def currency(self) -> str:
        return self._settings.currency

    def apply_menu_prices(
        self,
        items: List[OrderItem],
        menu_prices: Mapping[str, Money],
    ) -> List[OrderItem]:
        """Replace the unit price of every catalog-backed item with the menu price.

        Raises:
            ValidationError: An item references a menu item the restaurant
                does not offer
        """
        priced = []
        for index, item in enumerate(items):
            if item.menu_item_id is None:
                priced.append(item)
                continue
            menu_price = menu_prices.get(item.menu_item_id)
            if menu_price is None:
                raise ValidationError(
                    f"Unknown menu item: {item.menu_item_id}",
                    field=f"items[{index}].menu_item_id",
                    code="items.unknown_menu_item",
                )
            if menu_price != item.unit_price:
                logger.info(
                    f"Repricing '{item.name}' from {item.unit_price} to menu price {menu_price}"
                )
            priced.append(
                OrderItem(
                    name=item.name,
                    unit_price=menu_price,
                    quantity=item.quantity,
                    image_ref=item.image_ref,
                    special_instructions=item.special_instructions,
                    menu_item_id=item.menu_item_id,
                )
            )
        return priced

    def delivery_fee(self, delivery_type: DeliveryType, restaurant: RestaurantInfo) -> Money:
        if delivery_type is DeliveryType.PICKUP:
            return Money.zero(self.currency)
        if restaurant.delivery_fee_base is not None:
            return restaurant.delivery_fee_base
        return Money(self._settings.default_delivery_fee, self.currency)

    def estimated_delivery(self, now: datetime, restaurant: RestaurantInfo) -> datetime:
        minutes = restaurant.max_delivery_minutes or self._settings.default_delivery_minutes
        return now + timedelta(minutes=minutes)

    def compute_charges(
        self,
        items: List[OrderItem],
        delivery_type: DeliveryType,
        restaurant: RestaurantInfo,
        tip: Money,
        coupon: Optional[Coupon] = None,
        now: Optional[datetime] = None,
    ) -> OrderCharges:
        """
        Compute every non-item charge.

        Tax and service fee are rates applied to the subtotal; the coupon
        discount is computed on the subtotal as well.
        """
        subtotal = compute_subtotal((item.item_total for item in items), self.currency)

        discount = Money.zero(self.currency)
        if coupon is not None:
            discount = coupon.discount_for(subtotal, now or datetime.now(timezone.utc))

        return OrderCharges(
            delivery_fee=self.delivery_fee(delivery_type, restaurant),
            tax=subtotal.multiply(self._settings.tax_rate),
            service_fee=subtotal.multiply(self._settings.service_fee_rate),
            tip=tip,
            discount_amount=discount,
        )
