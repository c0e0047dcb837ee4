# src/dispatch_relay/analytics/sync_scheduler.py

from __future__ import annotations

"""
Analytics sync scheduler.

Runs one sync immediately on start, then one at every cron fire time
(default "0 2 * * *", daily at 02:00 local time):
- fetch impressions from the injected AnalyticsSource,
- publish a success/failure status message,
- emit sync_start / sync_success / sync_failure on the EventChannel.

The scraper behind AnalyticsSource is an external collaborator; it is loaded
from a "module:factory" string so it can live in a separate package.
"""

import asyncio
import contextlib
import importlib
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from croniter import croniter

from ..core.ports import AnalyticsSource, Publisher
from ..core.timing import Sleeper, delay
from .events import (
    EventChannel,
    SchedulerEvent,
    SchedulerStarted,
    SchedulerStopped,
    SyncFailed,
    SyncStarted,
    SyncSucceeded,
)

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _local_now() -> datetime:
    return datetime.now().astimezone()


def load_analytics_source(spec: str) -> AnalyticsSource:
    """Import and call a "package.module:factory" analytics source factory."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Analytics source must look like 'module:factory', got {spec!r}")
    factory = getattr(importlib.import_module(module_name), attr)
    return factory()


class AnalyticsSyncScheduler:
    def __init__(
        self,
        source: AnalyticsSource,
        publisher: Publisher,
        channel: EventChannel,
        *,
        cron: str = "0 2 * * *",
        account_id: str = "1",
        sleep: Sleeper = delay,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.source = source
        self.publisher = publisher
        self.channel = channel
        try:
            croniter(cron)
        except Exception as exc:
            raise ValueError(f"Invalid cron expression: {cron!r}") from exc
        self.cron = cron
        self.account_id = account_id
        self.syncs_run = 0
        self._sleep = sleep
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            logger.info("Analytics scheduler already running.")
            return

        await self.source.start()
        self._started = True
        logger.info("Analytics source started.")
        await self.channel.emit(SchedulerEvent.START, SchedulerStarted(cron=self.cron))

        logger.info("Running initial analytics sync immediately.")
        await self.sync()

        self._task = asyncio.create_task(self._loop(), name="analytics-sync")
        logger.info("Analytics scheduler started (%s); next sync in %.0fs.", self.cron, self.seconds_until_next_run())

    async def stop(self) -> None:
        if not self._started:
            return

        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

        await self.source.close()
        self._started = False
        logger.info("Analytics scheduler stopped.")
        await self.channel.emit(SchedulerEvent.STOP, SchedulerStopped(syncs_run=self.syncs_run))

    def seconds_until_next_run(self) -> float:
        now = self._clock()
        next_run = croniter(self.cron, now).get_next(datetime)
        return max(0.0, (next_run - now).total_seconds())

    async def _loop(self) -> None:
        while True:
            await self._sleep(self.seconds_until_next_run())
            logger.info("Scheduled analytics sync triggered.")
            await self.sync()

    async def sync(self) -> None:
        self.syncs_run += 1
        await self.channel.emit(SchedulerEvent.SYNC_START, SyncStarted(started_at=_now_iso()))

        try:
            impressions = await self.source.fetch_impressions()
        except Exception as exc:
            logger.exception("Analytics sync failed")
            await self.publisher.publish({"timestamp": _now_iso(), "status": "failure", "error": str(exc)})
            await self.channel.emit(SchedulerEvent.SYNC_FAILURE, SyncFailed(failed_at=_now_iso(), error=str(exc)))
            return

        logger.info("Fetched %d impressions.", len(impressions))
        await self.publisher.publish(
            {
                "timestamp": _now_iso(),
                "status": "success",
                "impressions": impressions[:1],
                "accountId": self.account_id,
            }
        )
        await self.channel.emit(
            SchedulerEvent.SYNC_SUCCESS,
            SyncSucceeded(finished_at=_now_iso(), impressions=len(impressions)),
        )
