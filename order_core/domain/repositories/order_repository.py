"""Repository interface for the Order aggregate."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..entities.order import Order
from ..enums import OrderStatus

OrderMutator = Callable[[Order], None]

SORTABLE_FIELDS = ("created_at", "total_amount")


@dataclass(frozen=True)
class OrderFilter:
    """Equality filters; None means "any"."""
    user_id: Optional[str] = None
    status: Optional[OrderStatus] = None
    restaurant_id: Optional[str] = None
    user_email: Optional[str] = None

    def matches(self, order: Order) -> bool:
        return (
            (self.user_id is None or order.user_id == self.user_id)
            and (self.status is None or order.status == self.status)
            and (self.restaurant_id is None or order.restaurant_id == self.restaurant_id)
            and (self.user_email is None or order.user_email == self.user_email)
        )


@dataclass(frozen=True)
class OrderSort:
    field: str = "created_at"
    descending: bool = True

    def __post_init__(self):
        if self.field not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort orders by '{self.field}'")


@dataclass
class OrderPage:
    items: List[Order] = field(default_factory=list)
    total: int = 0


class OrderRepository(ABC):
    """Abstract repository for Order aggregate persistence.

    Implementations never share mutable state with callers: every returned
    Order is a fresh object.
    """

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """Persist a new order and assign its id.

        Args:
            order: Order aggregate with an order number assigned

        Returns:
            The stored order (id set, version 1)

        Raises:
            UniqueViolationError: order_number already taken
        """
        pass

    @abstractmethod
    async def find_by_id(self, order_id: str) -> Order:
        """Retrieve order by unique identifier.

        Raises:
            NotFoundError: No order with that id
        """
        pass

    @abstractmethod
    async def find(
        self,
        order_filter: Optional[OrderFilter] = None,
        sort: Optional[OrderSort] = None,
        page: int = 1,
        limit: int = 10,
    ) -> OrderPage:
        """List orders matching a filter.

        Args:
            order_filter: Equality filters (None: all orders)
            sort: Sort order (default: created_at descending)
            page: 1-based page number
            limit: Page size

        Returns:
            OrderPage with one page of orders and the total match count
        """
        pass

    @abstractmethod
    async def update(
        self,
        order_id: str,
        mutator: OrderMutator,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Apply ``mutator`` to a fresh copy of the order and write it back.

        The write only happens if the stored version still equals
        ``expected_version`` (when given). Exceptions raised by the mutator
        propagate and nothing is written.

        Returns:
            The updated order (version incremented), carrying any domain
            events the mutator recorded

        Raises:
            NotFoundError: No order with that id
            ConcurrentUpdateError: Stored version differs from expected_version
        """
        pass
