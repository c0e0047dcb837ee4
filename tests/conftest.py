# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio

from dispatch_relay.analytics.events import EventChannel
from dispatch_relay.coordination.keyed_lock import KeyedLock
from dispatch_relay.coordination.queue_broker import QueueBroker
from dispatch_relay.core.state import AppState
from dispatch_relay.tasks.task_client import TaskLifecycleClient

from .fakes import BASE_URL, FakeClock, FakeSleeper, FakeTaskService, FakeUploader


@pytest.fixture()
def service() -> FakeTaskService:
    return FakeTaskService()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def sleeper(clock: FakeClock) -> FakeSleeper:
    return FakeSleeper(clock)


@pytest_asyncio.fixture()
async def client(service: FakeTaskService, sleeper: FakeSleeper, clock: FakeClock):
    """TaskLifecycleClient against the fake service; delays are recorded, not waited."""
    http = service.http_client()
    c = TaskLifecycleClient(
        base_url=BASE_URL,
        account_id="42",
        http_client=http,
        dispatch_max_retries=300,
        dispatch_retry_delay=2.0,
        server_error_max_retries=5,
        server_error_retry_delay=30.0,
        sleep=sleeper,
        clock=clock,
    )
    yield c
    await http.aclose()


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the orchestrator.

    We intentionally use a SimpleNamespace rather than reading the environment,
    to keep unit tests isolated and deterministic. Intervals are tiny so the
    pipeline runs in milliseconds.
    """
    return SimpleNamespace(
        account_id="42",
        dispatched_queue="dispatched-tasks",
        completed_queue="completed-tasks",
        producer_cooldown_seconds=60.0,
        queue_idle_interval_seconds=0.005,
        poll_timeout_seconds=2.0,
        poll_interval_seconds=0.005,
        post_download_delay_seconds=0.0,
        upload_lock_key="upload",
        lock_max_retries=3,
        lock_retry_delay_seconds=0.01,
        recover_on_start=False,
        archive_after_upload=False,
        shutdown_grace_seconds=2.0,
        output_dir=tmp_path / "downloads",
        data_dir=tmp_path,
    )


@pytest_asyncio.fixture()
async def state(settings: SimpleNamespace, service: FakeTaskService):
    """AppState wired with the fake service and real in-process broker/locks."""
    http = service.http_client()
    c = TaskLifecycleClient(
        base_url=BASE_URL,
        account_id=settings.account_id,
        http_client=http,
        dispatch_retry_delay=0.0,
        server_error_retry_delay=0.0,
    )
    st = AppState(
        settings=settings,
        client=c,
        broker=QueueBroker(),
        locks=KeyedLock(),
        uploader=FakeUploader(),
        channel=EventChannel(),
    )
    yield st
    await http.aclose()
