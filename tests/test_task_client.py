# tests/test_task_client.py

from __future__ import annotations

import httpx
import pytest

from dispatch_relay.core.results import Exhausted, Ok, TimedOut
from dispatch_relay.errors import DataIntegrityError, ServerError, TaskApiError, TaskFailedError
from dispatch_relay.tasks.task_client import TaskLifecycleClient
from dispatch_relay.tasks.task_models import PollStatus

from .fakes import BASE_URL, FakeSleeper, FakeTaskService


@pytest.mark.asyncio
async def test_dispatch_returns_id_after_two_rejections(client, service, sleeper) -> None:
    service.dispatch_responses = [
        (200, {"taskId": "T7", "error": "queue full"}),
        (404, {}),
        (200, {"taskId": "T9"}),
    ]

    outcome = await client.dispatch_with_retry()

    assert outcome == Ok("T9")
    assert sleeper.delays == [2.0, 2.0]
    dispatches = [r for r in service.requests if r.url.path == "/task/dispatch"]
    assert len(dispatches) == 3
    assert dispatches[0].url.params["accountId"] == "42"


@pytest.mark.asyncio
async def test_dispatch_exhausted_when_every_attempt_rejected(service) -> None:
    service.dispatch_responses = [(200, {"taskId": "T1", "error": "busy"})]
    sleeper = FakeSleeper()
    http = service.http_client()
    client = TaskLifecycleClient(
        base_url=BASE_URL,
        account_id="42",
        http_client=http,
        dispatch_max_retries=4,
        dispatch_retry_delay=2.0,
        sleep=sleeper,
    )

    outcome = await client.dispatch_with_retry()
    await http.aclose()

    assert outcome == Exhausted(attempts=4)
    assert sleeper.delays == [2.0, 2.0, 2.0]
    assert len(service.paths("/task/dispatch")) == 4


@pytest.mark.asyncio
async def test_dispatch_empty_error_string_is_accepted(client, service, sleeper) -> None:
    service.dispatch_responses = [(200, {"taskId": "T2", "error": ""})]

    assert await client.dispatch_with_retry() == Ok("T2")
    assert sleeper.delays == []


@pytest.mark.asyncio
async def test_dispatch_without_task_id_is_retried(client, service) -> None:
    service.dispatch_responses = [(200, {}), (200, {"taskId": "T3"})]

    assert await client.dispatch_with_retry() == Ok("T3")


@pytest.mark.asyncio
async def test_dispatch_unexpected_status_raises(client, service) -> None:
    service.dispatch_responses = [(500, {"error": "boom"})]

    with pytest.raises(TaskApiError) as err:
        await client.dispatch_with_retry()

    assert err.value.status_code == 500
    assert err.value.body == {"error": "boom"}


@pytest.mark.asyncio
async def test_check_status_retry_on_404_then_success(client, service) -> None:
    assert await client.check_status("T9") == PollStatus.RETRY

    service.add_completed_task("T9")

    assert await client.check_status("T9") == PollStatus.SUCCESS


@pytest.mark.asyncio
async def test_check_status_without_downloads_is_retry(client, service) -> None:
    service.completed["T9"] = (200, {"downloads": [], "content": "", "tokens": []})

    assert await client.check_status("T9") == PollStatus.RETRY


@pytest.mark.asyncio
async def test_check_status_failure_step_aborts(client, service) -> None:
    service.progress["T9"] = (200, {"currentStep": "Rendering FAILED", "progress": 40})
    service.add_completed_task("T9")

    with pytest.raises(TaskFailedError) as err:
        await client.check_status("T9")

    assert err.value.step == "Rendering FAILED"
    assert service.paths("/tasks/completed") == []


@pytest.mark.asyncio
async def test_progress_server_errors_are_retried(client, service, sleeper) -> None:
    service.progress["T9"] = [
        (502, {}),
        (503, {}),
        (200, {"currentStep": "encode", "progress": 80, "progressBar": "[####-]"}),
    ]
    service.add_completed_task("T9")

    assert await client.check_status("T9") == PollStatus.SUCCESS
    assert sleeper.delays == [30.0, 30.0]


@pytest.mark.asyncio
async def test_completion_server_errors_become_fatal(client, service, sleeper) -> None:
    service.completed["T9"] = (500, {"error": "db down"})

    with pytest.raises(ServerError) as err:
        await client.check_status("T9")

    assert err.value.status_code == 500
    assert len(service.paths("/tasks/completed/T9")) == 5
    assert sleeper.delays == [30.0] * 4


@pytest.mark.asyncio
async def test_single_attempt_server_error_does_not_sleep(service) -> None:
    service.progress["T9"] = (503, {"error": "restarting"})
    sleeper = FakeSleeper()
    http = service.http_client()
    client = TaskLifecycleClient(
        base_url=BASE_URL,
        account_id="42",
        http_client=http,
        server_error_max_retries=1,
        sleep=sleeper,
    )

    with pytest.raises(ServerError) as err:
        await client.fetch_progress("T9")
    await http.aclose()

    assert err.value.body == {"error": "restarting"}
    assert sleeper.delays == []
    assert len(service.paths("/tasks/progress/T9")) == 1


@pytest.mark.asyncio
async def test_progress_404_is_empty_progress_and_polling_continues(client, service, sleeper) -> None:
    service.progress["T9"] = (404, {"error": "no progress yet"})
    service.completed["T9"] = [
        (404, {}),
        (200, {"downloads": ["a.mp4"], "tokens": []}),
    ]

    progress = await client.fetch_progress("T9")
    assert progress.current_step is None
    assert progress.progress is None

    outcome = await client.poll_until_success("T9", max_duration=60.0, interval=5.0)

    assert outcome == Ok("T9")
    assert sleeper.delays == [5.0]
    assert len(service.paths("/tasks/progress/T9")) == 3


@pytest.mark.asyncio
async def test_poll_until_success_times_out_within_one_interval(client, clock, sleeper) -> None:
    outcome = await client.poll_until_success("T9", max_duration=10.0, interval=3.0)

    assert isinstance(outcome, TimedOut)
    assert outcome.elapsed == pytest.approx(10.0)
    assert sleeper.delays == [3.0, 3.0, 3.0, 1.0]


@pytest.mark.asyncio
async def test_poll_until_success_returns_ok(client, service, sleeper) -> None:
    service.completed["T9"] = [
        (404, {}),
        (200, {"downloads": [], "tokens": []}),
        (200, {"downloads": ["a.mp4"], "tokens": []}),
    ]

    outcome = await client.poll_until_success("T9", max_duration=60.0, interval=5.0)

    assert outcome == Ok("T9")
    assert sleeper.delays == [5.0, 5.0]


@pytest.mark.asyncio
async def test_download_without_title_fetches_no_artifacts(client, service) -> None:
    service.add_completed_task("T9", title="too, many, commas")

    with pytest.raises(DataIntegrityError):
        await client.download_results("T9")

    assert service.paths("/tasks/completed/T9/downloads") == []


@pytest.mark.asyncio
async def test_download_without_downloads_is_fatal(client, service) -> None:
    service.add_completed_task("T9", artifacts=[])

    with pytest.raises(DataIntegrityError) as err:
        await client.download_results("T9")

    assert "downloads" in err.value.reason


@pytest.mark.asyncio
async def test_download_results_fetches_every_artifact_in_order(client, service) -> None:
    service.add_completed_task("T9", title="night drive", artifacts=[b"first", b"second"])

    result = await client.download_results("T9")

    assert result.artifacts == [b"first", b"second"]
    assert result.title == "night drive"
    assert result.content == "Script for T9"
    assert service.paths("/tasks/completed/T9/downloads") == [
        "/tasks/completed/T9/downloads/0",
        "/tasks/completed/T9/downloads/1",
    ]


@pytest.mark.asyncio
async def test_download_artifact_error_raises(client, service) -> None:
    service.add_completed_task("T9")
    service.artifacts["T9"] = []

    with pytest.raises(TaskApiError) as err:
        await client.download_results("T9")

    assert err.value.status_code == 404


@pytest.mark.asyncio
async def test_list_completed_404_is_empty(client, service) -> None:
    service.account_listing = (404, {"error": "no tasks"})

    assert await client.list_completed_for_account() == []
    assert service.paths() == ["/tasks/completed/account/42"]


@pytest.mark.asyncio
async def test_list_completed_parses_summaries(client, service) -> None:
    service.account_listing = (200, {"completedTasks": [{"taskId": "A"}, {"id": "B"}, "junk"]})

    summaries = await client.list_completed_for_account()

    assert [s.task_id for s in summaries] == ["A", "B"]


@pytest.mark.asyncio
async def test_list_completed_other_errors_raise(client, service) -> None:
    service.account_listing = (500, {"error": "down"})

    with pytest.raises(TaskApiError):
        await client.list_completed_for_account()
    assert len(service.paths()) == 1


@pytest.mark.asyncio
async def test_archive(client, service) -> None:
    assert await client.archive("T9") == {"archived": "T9"}

    service.archive_status = 409
    with pytest.raises(TaskApiError) as err:
        await client.archive("T9")
    assert err.value.status_code == 409


def test_fake_service_routes_unknown_paths() -> None:
    # Guard for the fake itself: an unrouted call must not look like success.
    svc = FakeTaskService()
    resp = svc(httpx.Request("GET", f"{BASE_URL}/nope"))
    assert resp.status_code == 404
