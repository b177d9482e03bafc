# services/broadcaster.py

"""
Event broadcaster - fans job events out to every connected viewer
"""

import asyncio
import logging
import threading
from typing import List, Optional, Set

from awb_tracker.core.config import settings
from awb_tracker.models.events import JobEvent

logger = logging.getLogger(__name__)


class Subscription:
    """One viewer's mailbox. Events past ``maxsize`` are dropped for that viewer."""

    def __init__(self, maxsize: int):
        self._queue: "asyncio.Queue[JobEvent]" = asyncio.Queue(maxsize=maxsize)
        self.closed = False
        self.dropped = 0

    def offer(self, event: JobEvent) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    async def get(self) -> JobEvent:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()


class EventBroadcaster:
    """Best-effort pub/sub shared by all jobs.

    ``publish`` never blocks and never raises; viewers filter on ``job_id``.
    """

    def __init__(self, queue_size: Optional[int] = None):
        self._queue_size = queue_size or settings.event_queue_size
        self._subscribers: Set[Subscription] = set()
        self._lock = threading.Lock()

    def subscribe(self) -> Subscription:
        subscription = Subscription(self._queue_size)
        with self._lock:
            self._subscribers.add(subscription)
            count = len(self._subscribers)
        logger.info(f"Viewer connected ({count} active)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.closed = True
        with self._lock:
            self._subscribers.discard(subscription)
            count = len(self._subscribers)
        logger.info(f"Viewer disconnected ({count} active)")

    def _snapshot(self) -> List[Subscription]:
        with self._lock:
            return list(self._subscribers)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: JobEvent) -> int:
        """Deliver to every current subscriber; returns how many accepted it"""
        delivered = 0
        for subscription in self._snapshot():
            try:
                if subscription.offer(event):
                    delivered += 1
            except Exception as e:
                logger.debug(f"Dropping {event.type} event for job {event.job_id}: {e}")
        return delivered
