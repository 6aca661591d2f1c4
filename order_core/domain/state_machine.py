"""
Order status state machine and cancellation policy.

Allowed edges (same-state transitions are a no-op, never an error):

    pending          -> confirmed, cancelled
    confirmed        -> preparing, cancelled
    preparing        -> ready, cancelled (only if the policy allows it)
    ready            -> out_for_delivery
    out_for_delivery -> delivered
    delivered        -> refunded
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet

from .enums import OrderStatus


BASE_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.OUT_FOR_DELIVERY}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}


@dataclass(frozen=True)
class CancellationPolicy:
    """
    Which statuses an order may be cancelled from.

    Applies both to customer cancellation and to operator transitions into
    ``cancelled``.
    """
    cancellable_from: FrozenSet[OrderStatus] = frozenset(
        {OrderStatus.PENDING, OrderStatus.CONFIRMED}
    )

    @classmethod
    def strict(cls) -> 'CancellationPolicy':
        return cls()

    @classmethod
    def allow_while_preparing(cls) -> 'CancellationPolicy':
        return cls(
            cancellable_from=frozenset(
                {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING}
            )
        )

    @classmethod
    def from_flag(cls, allow_cancel_while_preparing: bool) -> 'CancellationPolicy':
        if allow_cancel_while_preparing:
            return cls.allow_while_preparing()
        return cls.strict()

    def can_cancel_from(self, status: OrderStatus) -> bool:
        return status in self.cancellable_from


DEFAULT_CANCELLATION_POLICY = CancellationPolicy.strict()


def can_transition(
    current: OrderStatus,
    target: OrderStatus,
    policy: CancellationPolicy = DEFAULT_CANCELLATION_POLICY,
) -> bool:
    """True if ``current -> target`` is an allowed edge under ``policy``."""
    if current == target:
        return True
    if target is OrderStatus.CANCELLED:
        return policy.can_cancel_from(current)
    return target in BASE_TRANSITIONS[current]
