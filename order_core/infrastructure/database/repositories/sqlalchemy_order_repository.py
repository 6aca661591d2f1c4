"""
SQLAlchemy Order Repository Implementation.

Implements OrderRepository with the SQLAlchemy async ORM. Each call runs
in its own session and transaction.
"""
from typing import List, Optional
import logging
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from order_core.domain.entities.order import Order
from order_core.domain.exceptions import ConcurrentUpdateError, NotFoundError, UniqueViolationError
from order_core.domain.repositories.order_repository import (
    OrderFilter,
    OrderMutator,
    OrderPage,
    OrderRepository,
    OrderSort,
)
from order_core.infrastructure.database.mappers import item_models, order_columns, to_domain, to_model
from order_core.infrastructure.database.models import OrderModel


logger = logging.getLogger(__name__)

ORDER_NUMBER_CONSTRAINT = "uq_orders_order_number"


def _is_order_number_violation(error: IntegrityError) -> bool:
    # PostgreSQL names the constraint, SQLite names the column
    message = str(error.orig).lower()
    return ORDER_NUMBER_CONSTRAINT in message or "orders.order_number" in message


class SQLAlchemyOrderRepository(OrderRepository):
    """
    SQLAlchemy implementation of OrderRepository.

    Updates are conditional on the stored version
    (``UPDATE ... WHERE id = :id AND version = :expected``), so concurrent
    writers never overwrite each other silently.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize repository with a session factory.

        Args:
            session_factory: SQLAlchemy async session factory
        """
        self._session_factory = session_factory

    async def create(self, order: Order) -> Order:
        number = str(order.order_number)
        order_id = str(uuid.uuid4())

        async with self._session_factory() as session:
            session.add(to_model(order, order_id, version=1))
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if _is_order_number_violation(e):
                    raise UniqueViolationError("order_number", number) from e
                raise

            logger.info(f"Created order: {number} (id: {order_id})")
            return to_domain(await self._load(session, order_id))

    async def find_by_id(self, order_id: str) -> Order:
        async with self._session_factory() as session:
            return to_domain(await self._load(session, order_id))

    async def find(
        self,
        order_filter: Optional[OrderFilter] = None,
        sort: Optional[OrderSort] = None,
        page: int = 1,
        limit: int = 10,
    ) -> OrderPage:
        order_filter = order_filter or OrderFilter()
        sort = sort or OrderSort()

        conditions = []
        if order_filter.user_id is not None:
            conditions.append(OrderModel.user_id == order_filter.user_id)
        if order_filter.status is not None:
            conditions.append(OrderModel.status == order_filter.status.value)
        if order_filter.restaurant_id is not None:
            conditions.append(OrderModel.restaurant_id == order_filter.restaurant_id)
        if order_filter.user_email is not None:
            conditions.append(OrderModel.user_email == order_filter.user_email)

        sort_column = OrderModel.total_minor if sort.field == "total_amount" else OrderModel.created_at
        ordering = sort_column.desc() if sort.descending else sort_column.asc()

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(OrderModel).where(*conditions)
            )
            result = await session.execute(
                select(OrderModel)
                .options(selectinload(OrderModel.items))
                .where(*conditions)
                .order_by(ordering, OrderModel.id)
                .limit(limit)
                .offset((page - 1) * limit)
            )
            models: List[OrderModel] = list(result.scalars().all())

        return OrderPage(items=[to_domain(model) for model in models], total=total or 0)

    async def update(
        self,
        order_id: str,
        mutator: OrderMutator,
        expected_version: Optional[int] = None,
    ) -> Order:
        async with self._session_factory() as session:
            model = await self._load(session, order_id)
            current_version = model.version
            if expected_version is not None and current_version != expected_version:
                raise ConcurrentUpdateError(order_id, expected_version, current_version)

            order = to_domain(model)
            mutator(order)
            new_version = current_version + 1

            result = await session.execute(
                update(OrderModel)
                .where(OrderModel.id == order_id, OrderModel.version == current_version)
                .values(version=new_version, **order_columns(order))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await session.rollback()
                raise ConcurrentUpdateError(order_id, current_version, None)

            # delete-orphan removes the previous rows on flush
            model.items = item_models(order, order_id)
            await session.commit()

        order.version = new_version
        logger.debug(f"Order {order_id} updated to version {new_version}")
        return order

    async def _load(self, session: AsyncSession, order_id: str) -> OrderModel:
        result = await session.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        if model is None:
            raise NotFoundError("Order", order_id)
        return model
