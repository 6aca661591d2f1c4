"""
Best-effort notification fan-out after checkout.

The customer confirmation and the admin alert run concurrently, each under
its own timeout. Failures are logged per channel and never reach the caller
that placed the order.
"""
import asyncio
from collections import deque
from dataclasses import dataclass, field
import logging
from typing import Deque, Dict, List, Set

from order_core.application.interfaces import INotifier
from order_core.domain.entities.order import Order

logger = logging.getLogger(__name__)

CUSTOMER_CHANNEL = "customer"
ADMIN_CHANNEL = "admin"


@dataclass
class NotificationReport:
    """Per-channel outcome of one dispatch."""
    order_number: str
    delivered: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def all_delivered(self) -> bool:
        return not self.failed


class NotificationDispatcher:
    """
    Runs notifications in background tasks.

    References to in-flight tasks are kept until they finish so they are
    not garbage-collected mid-flight; drain() waits for all of them.
    """

    def __init__(
        self,
        notifier: INotifier,
        timeout_seconds: float = 10.0,
        enabled: bool = True,
        history_size: int = 100,
    ):
        self._notifier = notifier
        self._timeout = timeout_seconds
        self._enabled = enabled
        self._tasks: Set[asyncio.Task] = set()
        self.reports: Deque[NotificationReport] = deque(maxlen=history_size)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, order: Order) -> bool:
        """
        Start notifying about ``order`` without waiting for it.

        Returns:
            True if a notification task was started
        """
        if not self._enabled:
            logger.info(f"Notifications disabled, skipping order {order.order_number}")
            return False

        task = asyncio.create_task(
            self.dispatch(order), name=f"notify-{order.order_number}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def dispatch(self, order: Order) -> NotificationReport:
        """Notify on every channel and report the outcome. Never raises."""
        order_number = str(order.order_number)
        channels = {
            CUSTOMER_CHANNEL: self._notifier.notify_order_confirmed(order),
            ADMIN_CHANNEL: self._notifier.notify_admin(order),
        }
        results = await asyncio.gather(
            *(asyncio.wait_for(call, self._timeout) for call in channels.values()),
            return_exceptions=True,
        )

        report = NotificationReport(order_number=order_number)
        for channel, result in zip(channels, results):
            if isinstance(result, asyncio.TimeoutError):
                report.failed[channel] = f"timed out after {self._timeout}s"
                logger.error(f"{channel} notification for {order_number} timed out")
            elif isinstance(result, BaseException):
                report.failed[channel] = str(result) or type(result).__name__
                logger.error(
                    f"{channel} notification for {order_number} failed: {result}",
                    exc_info=result,
                )
            else:
                report.delivered.append(channel)

        if report.all_delivered:
            logger.info(f"Notifications sent for order {order_number}")
        self.reports.append(report)
        return report

    async def drain(self) -> None:
        """Wait for every in-flight notification task."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
