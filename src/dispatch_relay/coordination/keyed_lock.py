# src/dispatch_relay/coordination/keyed_lock.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..core.results import Exhausted, Ok
from ..core.timing import Sleeper, delay

logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyedLock:
    """
    Map of key -> held, used to keep one logical operation at a time on a
    shared external resource (e.g. a single browser session).

    try_acquire is a plain check-and-set: it never awaits, so under asyncio it
    is atomic. A key that is absent from the map is unheld.
    """

    def __init__(self, *, sleep: Sleeper = delay) -> None:
        self._held: set[str] = set()
        self._sleep = sleep

    def try_acquire(self, key: str) -> bool:
        if key in self._held:
            return False
        self._held.add(key)
        return True

    def release(self, key: str) -> None:
        self._held.discard(key)

    def is_locked(self, key: str) -> bool:
        return key in self._held

    async def run_exclusive(
        self,
        key: str,
        critical_section: Callable[[], Awaitable[T]],
        max_retries: int = 3,
        retry_delay: float = 0.1,
    ) -> Ok[T] | Exhausted:
        """
        Run critical_section while holding `key`.

        Acquisition is attempted once plus up to `max_retries` more times,
        waiting `retry_delay` seconds in between. The key is released on every
        exit path of the critical section, including exceptions. If the key
        never frees up, returns Exhausted and the section is not run.
        """
        attempts = max(0, int(max_retries)) + 1

        for attempt in range(1, attempts + 1):
            if self.try_acquire(key):
                try:
                    return Ok(await critical_section())
                finally:
                    self.release(key)

            logger.debug("Lock %r busy (%d/%d)", key, attempt, attempts)
            if attempt < attempts:
                await self._sleep(retry_delay)

        logger.warning("Lock %r still busy after %d attempts", key, attempts)
        return Exhausted(attempts=attempts)
