# src/dispatch_relay/pipeline/producer.py

from __future__ import annotations

import asyncio
import logging

import httpx

from ..coordination.queue_broker import QueueBroker, QueueItem
from ..core.results import Ok
from ..core.timing import Profiler
from ..errors import RelayError, TaskApiError
from ..tasks.task_client import TaskLifecycleClient
from .payloads import DispatchedPayload

logger = logging.getLogger(__name__)


class DispatchProducer:
    """
    Periodic producer: dispatch one task, enqueue its id, cool down, repeat.

    The cool-down is waited after every attempt, successful or not.
    request_dispatch() ends the current cool-down early; stop() ends the loop
    at the next cool-down boundary without aborting an in-flight dispatch.
    """

    def __init__(
        self,
        client: TaskLifecycleClient,
        broker: QueueBroker,
        *,
        queue_name: str,
        cooldown_seconds: float = 15 * 60.0,
    ) -> None:
        self.client = client
        self.broker = broker
        self.queue_name = queue_name
        self.cooldown_seconds = max(0.0, float(cooldown_seconds))
        self._wake = asyncio.Event()
        self._stopping = False

    def request_dispatch(self) -> None:
        self._wake.set()

    def stop(self) -> None:
        self._stopping = True
        self._wake.set()

    async def dispatch_once(self) -> str | None:
        """Dispatch a task and enqueue it. Returns the task id, or None if abandoned."""
        profiler = Profiler("Total dispatch process")

        try:
            outcome = await self.client.dispatch_with_retry()
        except (RelayError, httpx.HTTPError) as exc:
            profiler.end()
            logger.error("Error during task dispatch: %s", exc)
            if isinstance(exc, TaskApiError) and exc.body:
                logger.error("HTTP response body: %r", exc.body)
            return None

        profiler.end()

        if not isinstance(outcome, Ok):
            logger.error("Dispatch failed after %d attempts; task abandoned.", outcome.attempts)
            return None

        task_id = outcome.value
        self.broker.enqueue(self.queue_name, QueueItem(id=task_id, payload=DispatchedPayload(task_id=task_id)))
        logger.info("Task %s dispatched and queued on %s", task_id, self.queue_name)
        return task_id

    async def run(self) -> None:
        while not self._stopping:
            await self.dispatch_once()
            if self._stopping:
                break

            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.cooldown_seconds)
            except TimeoutError:
                pass
            self._wake.clear()

        logger.info("Dispatch producer stopped.")
