# src/dispatch_relay/pipeline/workers.py

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from ..coordination.keyed_lock import KeyedLock
from ..coordination.queue_broker import QueueBroker, QueueItem
from ..core.ports import Uploader
from ..core.results import Exhausted, TimedOut
from ..core.timing import Sleeper, delay
from ..tasks.task_client import TaskLifecycleClient
from .payloads import CompletedPayload, DispatchedPayload

logger = logging.getLogger(__name__)


def artifact_path(output_dir: Path, task_id: str, index: int = 0) -> Path:
    suffix = "" if index == 0 else f"-{index}"
    return output_dir / f"task-{task_id}{suffix}.mp4"


def save_artifact(path: Path, data: bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.parent / (path.name + ".tmp")
    tmp.write_bytes(data)
    os.replace(tmp, path)
    return path


def display_title(title: str) -> str:
    """Upper-case the first character only; the rest is kept as written."""
    return title[:1].upper() + title[1:]


class ResultWorker:
    """Dispatched queue consumer: poll a task to completion, download, hand off for upload."""

    def __init__(
        self,
        client: TaskLifecycleClient,
        broker: QueueBroker,
        *,
        completed_queue: str,
        output_dir: Path,
        poll_timeout_seconds: float,
        poll_interval_seconds: float,
        post_download_delay_seconds: float = 0.0,
        sleep: Sleeper = delay,
    ) -> None:
        self.client = client
        self.broker = broker
        self.completed_queue = completed_queue
        self.output_dir = Path(output_dir)
        self.poll_timeout_seconds = poll_timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.post_download_delay_seconds = post_download_delay_seconds
        self._sleep = sleep

    async def process(self, task_id: str) -> CompletedPayload | None:
        """Poll and download one task. None means polling timed out and the task is abandoned."""
        outcome = await self.client.poll_until_success(
            task_id,
            self.poll_timeout_seconds,
            self.poll_interval_seconds,
        )
        if isinstance(outcome, TimedOut):
            logger.warning("Task %s abandoned: not completed within %.0fs", task_id, outcome.elapsed)
            return None

        result = await self.client.download_results(task_id)

        paths = [
            save_artifact(artifact_path(self.output_dir, task_id, i), data)
            for i, data in enumerate(result.artifacts)
        ]
        logger.info("Downloaded artifact saved to %s", paths[0])
        logger.debug("Task %s content: %s", task_id, result.content)

        if self.post_download_delay_seconds > 0:
            await self._sleep(self.post_download_delay_seconds)

        return CompletedPayload(output_path=str(paths[0]), title=result.title)

    async def handle(self, item: QueueItem[Any]) -> None:
        payload = item.payload
        if not isinstance(payload, DispatchedPayload):
            raise TypeError(f"ResultWorker expects DispatchedPayload, got {type(payload).__name__}")

        completed = await self.process(payload.task_id)
        if completed is None:
            return

        self.broker.enqueue(self.completed_queue, QueueItem(id=payload.task_id, payload=completed))


class UploadWorker:
    """
    Completed queue consumer: run the upload while holding the upload lock.

    The lock keeps exactly one upload on the shared resource at a time. If it
    stays busy past the retry bound the item goes back to the tail of the queue.
    """

    def __init__(
        self,
        uploader: Uploader,
        locks: KeyedLock,
        broker: QueueBroker,
        *,
        completed_queue: str,
        lock_key: str = "upload",
        lock_max_retries: int = 3,
        lock_retry_delay_seconds: float = 0.1,
        client: TaskLifecycleClient | None = None,
        archive_after_upload: bool = False,
    ) -> None:
        self.uploader = uploader
        self.locks = locks
        self.broker = broker
        self.completed_queue = completed_queue
        self.lock_key = lock_key
        self.lock_max_retries = lock_max_retries
        self.lock_retry_delay_seconds = lock_retry_delay_seconds
        self.client = client
        self.archive_after_upload = archive_after_upload

    async def handle(self, item: QueueItem[Any]) -> None:
        payload = item.payload
        if not isinstance(payload, CompletedPayload):
            raise TypeError(f"UploadWorker expects CompletedPayload, got {type(payload).__name__}")

        title = display_title(payload.title)
        outcome = await self.locks.run_exclusive(
            self.lock_key,
            lambda: self.uploader.upload(payload.output_path, title),
            self.lock_max_retries,
            self.lock_retry_delay_seconds,
        )

        if isinstance(outcome, Exhausted):
            logger.warning("Upload lock %r busy; task %s requeued", self.lock_key, item.id)
            self.broker.enqueue(self.completed_queue, item)
            return

        logger.info("Task %s uploaded: %s", item.id, title)

        if self.archive_after_upload and self.client is not None and item.id:
            await self.client.archive(item.id)
