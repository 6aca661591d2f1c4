"""
In-memory Order Repository Implementation.

A complete implementation of OrderRepository for tests, demos and
single-process deployments. Orders are deep-copied on every read and
write so callers never share state with the store.
"""
import asyncio
import copy
import logging
from typing import Dict, Optional
import uuid

from order_core.domain.entities.order import Order
from order_core.domain.exceptions import ConcurrentUpdateError, NotFoundError, UniqueViolationError
from order_core.domain.repositories.order_repository import (
    OrderFilter,
    OrderMutator,
    OrderPage,
    OrderRepository,
    OrderSort,
)

logger = logging.getLogger(__name__)


def _snapshot(order: Order) -> Order:
    stored = copy.deepcopy(order)
    stored.clear_domain_events()
    return stored


class InMemoryOrderRepository(OrderRepository):
    """
    Dictionary-backed OrderRepository.

    A single asyncio.Lock serialises writes, which makes the unique
    order-number check and the version compare-and-set atomic.
    """

    def __init__(self):
        """Initialize empty storage."""
        self._storage: Dict[str, Order] = {}
        self._ids_by_number: Dict[str, str] = {}
        self._lock = asyncio.Lock()
        logger.info("InMemoryOrderRepository initialized")

    async def create(self, order: Order) -> Order:
        if order.order_number is None:
            raise ValueError("Order number must be assigned before create()")
        number = str(order.order_number)

        async with self._lock:
            if number in self._ids_by_number:
                raise UniqueViolationError("order_number", number)

            stored = _snapshot(order)
            stored.id = str(uuid.uuid4())
            stored.version = 1
            self._storage[stored.id] = stored
            self._ids_by_number[number] = stored.id

        logger.info(f"Order stored: {number} (id: {stored.id})")
        return copy.deepcopy(stored)

    async def find_by_id(self, order_id: str) -> Order:
        order = self._storage.get(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return copy.deepcopy(order)

    async def find_by_order_number(self, order_number: str) -> Order:
        order_id = self._ids_by_number.get(order_number)
        if order_id is None:
            raise NotFoundError("Order", order_number)
        return await self.find_by_id(order_id)

    async def find(
        self,
        order_filter: Optional[OrderFilter] = None,
        sort: Optional[OrderSort] = None,
        page: int = 1,
        limit: int = 10,
    ) -> OrderPage:
        order_filter = order_filter or OrderFilter()
        sort = sort or OrderSort()

        matches = [order for order in self._storage.values() if order_filter.matches(order)]
        if sort.field == "total_amount":
            matches.sort(key=lambda o: o.total_amount.amount, reverse=sort.descending)
        else:
            matches.sort(key=lambda o: o.created_at, reverse=sort.descending)

        start = (page - 1) * limit
        return OrderPage(
            items=[copy.deepcopy(order) for order in matches[start:start + limit]],
            total=len(matches),
        )

    async def update(
        self,
        order_id: str,
        mutator: OrderMutator,
        expected_version: Optional[int] = None,
    ) -> Order:
        async with self._lock:
            stored = self._storage.get(order_id)
            if stored is None:
                raise NotFoundError("Order", order_id)
            if expected_version is not None and stored.version != expected_version:
                raise ConcurrentUpdateError(order_id, expected_version, stored.version)

            working = copy.deepcopy(stored)
            mutator(working)
            working.version = stored.version + 1
            self._storage[order_id] = _snapshot(working)

        logger.debug(f"Order {order_id} updated to version {working.version}")
        return working

    def count(self) -> int:
        return len(self._storage)

    def clear(self) -> None:
        """Clear all orders (for demo/testing)."""
        self._storage.clear()
        self._ids_by_number.clear()
