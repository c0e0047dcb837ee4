# tests/test_keyed_lock.py

from __future__ import annotations

import asyncio

import pytest

from dispatch_relay.coordination.keyed_lock import KeyedLock
from dispatch_relay.core.results import Exhausted, Ok

from .fakes import FakeSleeper


def test_try_acquire_is_exclusive_per_key() -> None:
    locks = KeyedLock()

    assert locks.try_acquire("upload")
    assert not locks.try_acquire("upload")
    assert locks.try_acquire("other")
    assert locks.is_locked("upload")

    locks.release("upload")
    assert not locks.is_locked("upload")
    assert locks.try_acquire("upload")

    # releasing an unheld key is a no-op
    locks.release("never-held")


@pytest.mark.asyncio
async def test_run_exclusive_returns_falsy_values_as_ok() -> None:
    locks = KeyedLock()

    async def section() -> None:
        return None

    assert await locks.run_exclusive("upload", section) == Ok(None)
    assert not locks.is_locked("upload")


@pytest.mark.asyncio
async def test_run_exclusive_releases_on_error() -> None:
    locks = KeyedLock()

    async def section() -> None:
        assert locks.is_locked("upload")
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await locks.run_exclusive("upload", section)

    assert not locks.is_locked("upload")


@pytest.mark.asyncio
async def test_run_exclusive_gives_up_without_running_section() -> None:
    sleeper = FakeSleeper()
    locks = KeyedLock(sleep=sleeper)
    locks.try_acquire("upload")
    calls = 0

    async def section() -> str:
        nonlocal calls
        calls += 1
        return "ran"

    outcome = await locks.run_exclusive("upload", section, max_retries=2, retry_delay=0.1)

    assert outcome == Exhausted(attempts=3)
    assert calls == 0
    assert sleeper.delays == [0.1, 0.1]
    assert locks.is_locked("upload")


@pytest.mark.asyncio
async def test_back_to_back_calls_are_serialized() -> None:
    locks = KeyedLock()
    active = 0
    max_active = 0
    order: list[str] = []

    def make_section(name: str, hold: float):
        async def section() -> str:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            order.append(f"{name}:start")
            await asyncio.sleep(hold)
            order.append(f"{name}:end")
            active -= 1
            return name

        return section

    first = asyncio.create_task(locks.run_exclusive("upload", make_section("first", 0.05), 3, 0.1))
    await asyncio.sleep(0)
    second = asyncio.create_task(locks.run_exclusive("upload", make_section("second", 0.0), 3, 0.1))

    results = await asyncio.wait_for(asyncio.gather(first, second), timeout=5.0)

    assert results == [Ok("first"), Ok("second")]
    assert max_active == 1
    assert order == ["first:start", "first:end", "second:start", "second:end"]
    assert not locks.is_locked("upload")
