"""
Order number generation with collision retry.

Numbers are ORD + 13-digit epoch milliseconds + 4-digit random suffix.
They are neither secret nor unique by construction; the repository's
unique constraint is the arbiter and collisions are retried here.
"""
from datetime import datetime, timezone
import logging
import random
from typing import Callable, Optional

from order_core.domain.entities.order import Order
from order_core.domain.exceptions import ResourceExhaustedError, UniqueViolationError
from order_core.domain.repositories import OrderRepository
from order_core.domain.value_objects import OrderNumber
from order_core.domain.value_objects.order_number import PREFIX

logger = logging.getLogger(__name__)

SUFFIX_SPACE = 10_000
DEFAULT_MAX_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderNumberGenerator:
    """Produces order numbers and persists new orders under a fresh one."""

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self._clock = clock or _utcnow
        self._rng = rng or random.SystemRandom()
        self._max_attempts = max_attempts

    def generate(self) -> OrderNumber:
        millis = int(self._clock().timestamp() * 1000)
        suffix = self._rng.randrange(SUFFIX_SPACE)
        return OrderNumber(f"{PREFIX}{millis:013d}{suffix:04d}")

    async def create_with_retry(
        self,
        repository: OrderRepository,
        order: Order,
        max_attempts: Optional[int] = None,
    ) -> Order:
        """Assign a number and create the order, retrying on number collisions.

        Args:
            repository: Where to create the order
            order: Unpersisted order (its number is overwritten)
            max_attempts: Overrides the generator default

        Returns:
            The stored order

        Raises:
            ResourceExhaustedError: Every attempt collided
            UniqueViolationError: Collision on a field other than order_number
        """
        attempts = max_attempts or self._max_attempts

        for attempt in range(1, attempts + 1):
            order.assign_order_number(self.generate())
            try:
                return await repository.create(order)
            except UniqueViolationError as e:
                if e.field != "order_number":
                    raise
                logger.warning(
                    f"Order number collision on {e.value} "
                    f"(attempt {attempt}/{attempts}), regenerating"
                )

        raise ResourceExhaustedError(
            f"Could not allocate a unique order number after {attempts} attempts",
            details={"attempts": attempts},
        )
