# src/dispatch_relay/analytics/events.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)


class SchedulerEvent(StrEnum):
    START = "start"
    STOP = "stop"
    SYNC_START = "sync_start"
    SYNC_SUCCESS = "sync_success"
    SYNC_FAILURE = "sync_failure"


@dataclass(slots=True, frozen=True)
class SchedulerStarted:
    cron: str


@dataclass(slots=True, frozen=True)
class SchedulerStopped:
    syncs_run: int


@dataclass(slots=True, frozen=True)
class SyncStarted:
    started_at: str


@dataclass(slots=True, frozen=True)
class SyncSucceeded:
    finished_at: str
    impressions: int


@dataclass(slots=True, frozen=True)
class SyncFailed:
    failed_at: str
    error: str


EventPayload = SchedulerStarted | SchedulerStopped | SyncStarted | SyncSucceeded | SyncFailed
EventCallback = Callable[[EventPayload], Awaitable[None] | None]

_PAYLOAD_TYPES: dict[SchedulerEvent, type] = {
    SchedulerEvent.START: SchedulerStarted,
    SchedulerEvent.STOP: SchedulerStopped,
    SchedulerEvent.SYNC_START: SyncStarted,
    SchedulerEvent.SYNC_SUCCESS: SyncSucceeded,
    SchedulerEvent.SYNC_FAILURE: SyncFailed,
}


class EventChannel:
    """
    Observer registry for scheduler events.

    Each event carries exactly one payload type; emitting a mismatched payload
    is a programming error and raises TypeError. A failing subscriber is logged
    and does not prevent the others from running.
    """

    def __init__(self) -> None:
        self._subscribers: dict[SchedulerEvent, list[EventCallback]] = {e: [] for e in SchedulerEvent}

    def subscribe(self, event: SchedulerEvent, callback: EventCallback) -> None:
        self._subscribers[event].append(callback)

    async def emit(self, event: SchedulerEvent, payload: EventPayload) -> None:
        expected = _PAYLOAD_TYPES[event]
        if not isinstance(payload, expected):
            raise TypeError(f"{event.value} expects {expected.__name__}, got {type(payload).__name__}")

        for callback in list(self._subscribers[event]):
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Subscriber for %s failed", event.value)
