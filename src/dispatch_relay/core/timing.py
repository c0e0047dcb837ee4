# src/dispatch_relay/core/timing.py

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


async def delay(seconds: float) -> None:
    """Suspend the current task; every retry and poll loop waits through this."""
    await asyncio.sleep(max(0.0, float(seconds)))


class Profiler:
    """
    Log how long a labelled step took.

    Usable as a context manager or by calling end() explicitly:

        with Profiler("Dispatch request"):
            ...
    """

    def __init__(self, label: str) -> None:
        self.label = label
        self.start = time.monotonic()
        self.elapsed: float | None = None
        logger.info("Started: %s", label)

    def end(self) -> float:
        self.elapsed = time.monotonic() - self.start
        logger.info("Finished: %s - %.2fs", self.label, self.elapsed)
        return self.elapsed

    def __enter__(self) -> Profiler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.end()
