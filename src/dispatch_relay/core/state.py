# src/dispatch_relay/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..analytics.events import EventChannel
from ..coordination.keyed_lock import KeyedLock
from ..coordination.queue_broker import QueueBroker
from ..tasks.task_client import TaskLifecycleClient
from .ports import Uploader

if TYPE_CHECKING:
    from ..analytics.sync_scheduler import AnalyticsSyncScheduler


@dataclass
class AppState:
    """
    Everything the pipeline needs, built once by cli/bootstrap.py.

    broker and locks are the process-wide instances: every component gets them
    from here rather than from a module-level singleton.
    """

    settings: Any

    client: TaskLifecycleClient
    broker: QueueBroker
    locks: KeyedLock
    uploader: Uploader
    channel: EventChannel

    analytics: AnalyticsSyncScheduler | None = None

    async def aclose(self) -> None:
        await self.client.aclose()
        if self.analytics is not None:
            close = getattr(self.analytics.publisher, "aclose", None)
            if close is not None:
                await close()
