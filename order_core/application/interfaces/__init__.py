"""Application layer interfaces."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional
import uuid

from order_core.domain.entities.order import Order
from order_core.domain.value_objects import Coupon, Money


@dataclass(frozen=True)
class Actor:
    """
    Resolved caller identity.

    Guests get a synthetic id and no email; contact data is never invented
    for them.
    """
    id: str
    email: Optional[str] = None
    is_admin: bool = False
    is_guest: bool = False

    @classmethod
    def guest(cls) -> 'Actor':
        return cls(id=f"guest-{uuid.uuid4()}", is_guest=True)


@dataclass(frozen=True)
class RestaurantInfo:
    """Restaurant parameters that feed pricing and authorization."""
    id: str
    name: str
    delivery_fee_base: Optional[Money] = None
    max_delivery_minutes: Optional[int] = None
    owner_id: Optional[str] = None
    image: str = ""
    is_active: bool = True


class INotifier(ABC):
    """
    Interface for order notifications.

    Implementations may raise; callers treat notifications as best-effort.
    """

    @abstractmethod
    async def notify_order_confirmed(self, order: Order) -> None:
        """
        Send the order confirmation to the customer.

        Args:
            order: Persisted order (order number assigned)
        """
        pass

    @abstractmethod
    async def notify_admin(self, order: Order) -> None:
        """
        Alert administrators about a new order.

        Args:
            order: Persisted order (order number assigned)
        """
        pass


class IAuthorizer(ABC):
    """Interface for resolving a caller credential to an identity."""

    @abstractmethod
    async def resolve(self, credential: Optional[str]) -> Optional[Actor]:
        """
        Resolve a credential.

        Args:
            credential: Opaque token, or None for anonymous callers

        Returns:
            The Actor, or None if the credential is not recognised
        """
        pass


class ICatalogSource(ABC):
    """Interface for restaurant, menu and coupon lookups."""

    @abstractmethod
    async def get_restaurant(self, restaurant_id: str) -> Optional[RestaurantInfo]:
        pass

    @abstractmethod
    async def get_menu_prices(self, restaurant_id: str) -> Mapping[str, Money]:
        """
        Current menu prices.

        Returns:
            menu_item_id -> unit price
        """
        pass

    @abstractmethod
    async def find_coupon(self, code: str) -> Optional[Coupon]:
        pass


__all__ = ["Actor", "IAuthorizer", "ICatalogSource", "INotifier", "RestaurantInfo"]
