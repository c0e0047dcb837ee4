# src/dispatch_relay/pipeline/orchestrator.py

from __future__ import annotations

"""
Pipeline orchestrator.

Per task: Pending -> Dispatched -> Polled -> Downloaded -> QueuedForUpload -> Uploaded.

Three loops run as independent asyncio tasks:
- DispatchProducer: dispatch + enqueue on the dispatched queue, then cool down,
- dispatched consumer (ResultWorker): poll, download, enqueue on the completed queue,
- completed consumer (UploadWorker): lock-guarded upload.

Handler errors are logged and the task is abandoned; the consumer keeps going.
There is no retry around poll -> download -> upload.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..analytics.events import SchedulerEvent
from ..coordination.queue_broker import QueueItem
from ..core.state import AppState
from ..errors import TaskApiError
from .payloads import DispatchedPayload
from .producer import DispatchProducer
from .workers import ResultWorker, UploadWorker

logger = logging.getLogger(__name__)

Handler = Callable[[QueueItem[Any]], Awaitable[None]]


def guarded(stage: str, handler: Handler) -> Handler:
    """Wrap a queue handler so one failing task does not end the consumer loop."""

    async def _run(item: QueueItem[Any]) -> None:
        try:
            await handler(item)
        except Exception as exc:
            logger.exception("%s failed for task %s; task abandoned", stage, item.id or "?")
            if isinstance(exc, TaskApiError) and exc.body:
                logger.error("HTTP response body: %r", exc.body)

    return _run


class PipelineOrchestrator:
    def __init__(self, state: AppState) -> None:
        self.state = state
        s = state.settings

        self.producer = DispatchProducer(
            state.client,
            state.broker,
            queue_name=s.dispatched_queue,
            cooldown_seconds=s.producer_cooldown_seconds,
        )
        self.result_worker = ResultWorker(
            state.client,
            state.broker,
            completed_queue=s.completed_queue,
            output_dir=s.output_dir,
            poll_timeout_seconds=s.poll_timeout_seconds,
            poll_interval_seconds=s.poll_interval_seconds,
            post_download_delay_seconds=s.post_download_delay_seconds,
        )
        self.upload_worker = UploadWorker(
            state.uploader,
            state.locks,
            state.broker,
            completed_queue=s.completed_queue,
            lock_key=s.upload_lock_key,
            lock_max_retries=s.lock_max_retries,
            lock_retry_delay_seconds=s.lock_retry_delay_seconds,
            client=state.client,
            archive_after_upload=s.archive_after_upload,
        )

        self._producer_task: asyncio.Task[None] | None = None
        self._consumer_tasks: list[asyncio.Task[None]] = []
        self._consumers_stop = asyncio.Event()

        state.channel.subscribe(SchedulerEvent.SYNC_SUCCESS, self._on_sync_success)

    def _on_sync_success(self, _payload: object) -> None:
        logger.info("Analytics sync succeeded; requesting a dispatch.")
        self.producer.request_dispatch()

    async def recover_completed(self) -> int:
        """
        Re-queue tasks the remote service already finished for this account.

        Covers a crash between "poll succeeded" and "enqueued for upload":
        polling a completed task succeeds on the first check, so the normal
        consumer path downloads and uploads it again.
        """
        summaries = await self.state.client.list_completed_for_account()
        queue = self.state.settings.dispatched_queue
        count = 0
        for summary in summaries:
            if not summary.task_id:
                continue
            self.state.broker.enqueue(queue, QueueItem(id=summary.task_id, payload=DispatchedPayload(summary.task_id)))
            count += 1
        logger.info("Recovered %d completed task(s) onto %s", count, queue)
        return count

    async def start(self) -> None:
        s = self.state.settings
        broker = self.state.broker

        self._consumers_stop.clear()

        if s.recover_on_start:
            try:
                await self.recover_completed()
            except Exception:
                logger.exception("Recovery of completed tasks failed; continuing without it")

        self._consumer_tasks = [
            asyncio.create_task(
                broker.consume(
                    s.dispatched_queue,
                    guarded("Poll/download", self.result_worker.handle),
                    idle_interval=s.queue_idle_interval_seconds,
                    stop=self._consumers_stop,
                ),
                name="consumer-dispatched",
            ),
            asyncio.create_task(
                broker.consume(
                    s.completed_queue,
                    guarded("Upload", self.upload_worker.handle),
                    idle_interval=s.queue_idle_interval_seconds,
                    stop=self._consumers_stop,
                ),
                name="consumer-completed",
            ),
        ]

        if self.state.analytics is not None:
            try:
                await self.state.analytics.start()
            except Exception:
                logger.exception("Analytics scheduler failed to start; continuing without it")

        self._producer_task = asyncio.create_task(self.producer.run(), name="dispatch-producer")
        logger.info("Pipeline started.")

    async def stop(self) -> None:
        """
        Stop the producer at its cool-down boundary, then let each consumer
        finish the item it is handling.

        Consumers still busy after `shutdown_grace_seconds` are cancelled; an
        upload command is terminated before its lock is released.
        """
        self.producer.stop()
        if self._producer_task is not None:
            await self._producer_task
            self._producer_task = None

        self._consumers_stop.set()
        if self._consumer_tasks:
            grace = self.state.settings.shutdown_grace_seconds
            _, pending = await asyncio.wait(self._consumer_tasks, timeout=grace)
            for task in pending:
                logger.warning("%s still busy after %.0fs; cancelling", task.get_name(), grace)
                task.cancel()
            for task in self._consumer_tasks:
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._consumer_tasks = []

        if self.state.analytics is not None:
            await self.state.analytics.stop()

        logger.info("Pipeline stopped.")

    async def run_until(self, stop: asyncio.Event) -> None:
        await self.start()
        try:
            await stop.wait()
        finally:
            await self.stop()
