"""In-memory catalog of restaurants, menu prices and coupons."""
import logging
from typing import Dict, Mapping, Optional

from order_core.application.interfaces import ICatalogSource, RestaurantInfo
from order_core.domain.value_objects import Coupon, Money


logger = logging.getLogger(__name__)


class InMemoryCatalogSource(ICatalogSource):
    """Dictionary-backed ICatalogSource."""

    def __init__(self):
        self._restaurants: Dict[str, RestaurantInfo] = {}
        self._menus: Dict[str, Dict[str, Money]] = {}
        self._coupons: Dict[str, Coupon] = {}

    def add_restaurant(
        self,
        restaurant: RestaurantInfo,
        menu: Optional[Mapping[str, Money]] = None,
    ) -> None:
        self._restaurants[restaurant.id] = restaurant
        self._menus[restaurant.id] = dict(menu or {})
        logger.debug(f"Catalog: restaurant {restaurant.id} with {len(self._menus[restaurant.id])} menu items")

    def add_coupon(self, coupon: Coupon) -> None:
        self._coupons[coupon.code] = coupon

    async def get_restaurant(self, restaurant_id: str) -> Optional[RestaurantInfo]:
        return self._restaurants.get(restaurant_id)

    async def get_menu_prices(self, restaurant_id: str) -> Mapping[str, Money]:
        return dict(self._menus.get(restaurant_id, {}))

    async def find_coupon(self, code: str) -> Optional[Coupon]:
        return self._coupons.get(code.strip().upper())
