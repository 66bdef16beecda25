"""
Topic Event Bus

Fan-out of events to any number of asyncio.Queue subscribers. The price
refresher publishes StateEvents under "prices"; WebSocket handlers and tests
consume them.

A full subscriber queue loses the event instead of blocking the publisher.
"""

import asyncio
from typing import Any, Dict, List

from core.logging import get_logger


class EventBus:
    """
    Example:
        >>> queue = await bus.subscribe("prices")
        >>> await bus.publish("prices", event)
        >>> await queue.get()
        >>> await bus.unsubscribe("prices", queue)
    """

    def __init__(self, max_queue_size: int = 100) -> None:
        self._subscribers: Dict[str, List[asyncio.Queue]] = {}
        self._max_queue_size = max_queue_size
        self._logger = get_logger(__name__)

    async def subscribe(self, topic: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers.setdefault(topic, []).append(queue)
        self._logger.debug(f"'{topic}' subscribers: {self.subscriber_count(topic)}")
        return queue

    async def unsubscribe(self, topic: str, queue: asyncio.Queue) -> None:
        """Detach the queue and discard anything still buffered in it."""
        queues = self._subscribers.get(topic, [])
        if queue not in queues:
            return
        queues.remove(queue)
        while not queue.empty():
            queue.get_nowait()
        self._logger.debug(f"'{topic}' subscribers: {self.subscriber_count(topic)}")

    async def publish(self, topic: str, event: Any) -> None:
        for queue in tuple(self._subscribers.get(topic, ())):
            if queue.full():
                self._logger.warning(f"Subscriber queue full on '{topic}', event dropped")
                continue
            queue.put_nowait(event)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))


bus = EventBus()
