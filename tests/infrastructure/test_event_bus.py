"""Tests for InMemoryEventBus."""

import pytest

from order_core.domain.events import OrderCancelledEvent, OrderPlacedEvent, OrderStatusChangedEvent
from order_core.infrastructure.event_bus import InMemoryEventBus


def _placed(number: str = "ORD1") -> OrderPlacedEvent:
    return OrderPlacedEvent(order_number=number, restaurant_id="rest-1", total_amount="36.44")


@pytest.mark.asyncio
async def test_subscribers_receive_events_in_order():
    bus = InMemoryEventBus()
    received = []

    async def async_handler(event):
        received.append(("async", event.event_type))

    bus.subscribe(async_handler)

    await bus.publish_all([
        _placed(),
        OrderStatusChangedEvent(order_number="ORD1", previous_status="pending", new_status="confirmed"),
    ])

    assert received == [("async", "OrderPlacedEvent"), ("async", "OrderStatusChangedEvent")]
    assert [e.aggregate_id for e in bus.published] == ["ORD1", "ORD1"]
    assert bus.published[0].aggregate_type == "Order"


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_block_others():
    bus = InMemoryEventBus()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    def sync_handler(event):
        received.append(event.event_type)

    bus.subscribe(broken)
    bus.subscribe(sync_handler)

    await bus.publish(OrderCancelledEvent(order_number="ORD1", previous_status="pending", reason="x"))

    assert received == ["OrderCancelledEvent"]


@pytest.mark.asyncio
async def test_unsubscribe():
    bus = InMemoryEventBus()
    received = []
    bus.subscribe(received.append)
    bus.unsubscribe(received.append)

    await bus.publish(_placed())

    assert received == []
    assert len(bus.published) == 1


@pytest.mark.asyncio
async def test_history_is_bounded():
    bus = InMemoryEventBus(max_history=2)

    for index in range(3):
        await bus.publish(_placed(f"ORD{index}"))

    assert [e.order_number for e in bus.published] == ["ORD1", "ORD2"]
