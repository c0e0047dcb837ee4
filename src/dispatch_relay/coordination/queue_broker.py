# src/dispatch_relay/coordination/queue_broker.py

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..core.timing import Sleeper, delay

logger = logging.getLogger(__name__)

P = TypeVar("P")


@dataclass(slots=True, frozen=True)
class QueueItem(Generic[P]):
    id: str
    payload: P


QueueHandler = Callable[[QueueItem[Any]], Awaitable[None]]


class QueueBroker:
    """
    Named, unbounded FIFO queues that let pipeline stages talk by message
    passing. Queues are created lazily on first reference and live for the
    process lifetime.
    """

    def __init__(self, *, sleep: Sleeper = delay) -> None:
        self._queues: dict[str, deque[QueueItem[Any]]] = {}
        self._sleep = sleep

    def _queue(self, name: str) -> deque[QueueItem[Any]]:
        q = self._queues.get(name)
        if q is None:
            q = deque()
            self._queues[name] = q
        return q

    def enqueue(self, name: str, item: QueueItem[Any]) -> None:
        self._queue(name).append(item)
        logger.debug("Enqueued id=%s on %s (len=%d)", item.id, name, len(self._queues[name]))

    def dequeue(self, name: str) -> QueueItem[Any] | None:
        q = self._queues.get(name)
        if not q:
            return None
        return q.popleft()

    def peek(self, name: str) -> QueueItem[Any] | None:
        q = self._queues.get(name)
        return q[0] if q else None

    def length(self, name: str) -> int:
        q = self._queues.get(name)
        return len(q) if q else 0

    def list_queue_names(self) -> list[str]:
        return list(self._queues)

    def clear(self, name: str) -> None:
        self._queues.pop(name, None)

    async def consume(
        self,
        name: str,
        handler: QueueHandler,
        *,
        idle_interval: float = 0.1,
        stop: asyncio.Event | None = None,
    ) -> None:
        """
        Process `name` one item at a time in insertion order.

        Each handler call finishes before the next item is dequeued. Handler
        errors are not caught here: an uncaught error ends this loop.
        Runs until `stop` is set; the stop is checked between items, so the
        handler in flight is never interrupted by it.
        """
        self._queue(name)
        logger.info("Consumer started for queue %s", name)

        while stop is None or not stop.is_set():
            item = self.dequeue(name)
            if item is None:
                await self._sleep(idle_interval)
                continue
            await handler(item)

        logger.info("Consumer for queue %s stopped", name)
