"""
Event Bus Implementation (Infrastructure Layer).

Keeps published events in memory and notifies subscribers.
"""
import asyncio
import logging
from typing import Callable, List, Optional, Set

from order_core.domain.event_bus import EventBus
from order_core.domain.events.base import DomainEvent


logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBus):
    """
    In-Memory Event Bus Implementation.

    Features:
    - Keeps a bounded log of published events
    - Notifies registered subscribers (sync or async callables)
    - A failing subscriber never stops delivery to the others
    """

    def __init__(self, max_history: Optional[int] = 1000):
        """Initialize event bus with subscribers."""
        self._subscribers: Set[Callable[[DomainEvent], None]] = set()
        self._history: List[DomainEvent] = []
        self._max_history = max_history

    @property
    def published(self) -> List[DomainEvent]:
        return list(self._history)

    async def publish(self, event: DomainEvent) -> None:
        """
        Publish a single domain event.

        Args:
            event: Domain event to publish
        """
        logger.info(f"Publishing event: {event.event_type} (aggregate: {event.aggregate_id})")
        self._remember(event)
        await self._notify_subscribers(event)

    async def publish_all(self, events: List[DomainEvent]) -> None:
        """
        Publish multiple domain events, in order.

        Args:
            events: List of domain events to publish
        """
        if not events:
            return

        logger.info(f"Publishing {len(events)} events")
        for event in events:
            self._remember(event)
        for event in events:
            await self._notify_subscribers(event)

    def subscribe(self, handler: Callable[[DomainEvent], None]) -> None:
        """
        Subscribe to all domain events.

        Args:
            handler: Callback function that receives events
        """
        self._subscribers.add(handler)
        logger.info(f"Registered event subscriber: {getattr(handler, '__name__', handler)}")

    def unsubscribe(self, handler: Callable[[DomainEvent], None]) -> None:
        self._subscribers.discard(handler)

    def _remember(self, event: DomainEvent) -> None:
        self._history.append(event)
        if self._max_history is not None and len(self._history) > self._max_history:
            del self._history[: len(self._history) - self._max_history]

    async def _notify_subscribers(self, event: DomainEvent) -> None:
        """Notify all subscribers about an event."""
        for subscriber in list(self._subscribers):
            try:
                if asyncio.iscoroutinefunction(subscriber):
                    await subscriber(event)
                else:
                    subscriber(event)
            except Exception as e:
                logger.error(
                    f"Subscriber {getattr(subscriber, '__name__', subscriber)} failed: {e}",
                    exc_info=True,
                )
