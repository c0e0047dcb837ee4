# src/dispatch_relay/tasks/task_client.py

from __future__ import annotations

"""
TaskLifecycleClient.

Talks to the remote task service over HTTP and owns every retry rule for a
single remote task:
- dispatch: retried on rejection with a short fixed backoff,
- progress/completion fetches: retried on 5xx with a longer backoff,
- polling: bounded by a wall-clock ceiling, returns TimedOut instead of raising,
- downloads/listing/archive: no retries here, failures propagate.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from ..core.results import Exhausted, Ok, TimedOut
from ..core.timing import Profiler, Sleeper, delay
from ..errors import DataIntegrityError, ServerError, TaskApiError, TaskFailedError
from .task_models import (
    CompletedTask,
    CompletedTaskSummary,
    DispatchResponse,
    DownloadedResult,
    PollStatus,
    TaskProgress,
)
from .tokens import extract_title

logger = logging.getLogger(__name__)


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class TaskLifecycleClient:
    """HTTP client for the remote task service, scoped to one account."""

    def __init__(
        self,
        *,
        base_url: str,
        account_id: str,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 60.0,
        dispatch_max_retries: int = 300,
        dispatch_retry_delay: float = 2.0,
        server_error_max_retries: int = 5,
        server_error_retry_delay: float = 30.0,
        failure_marker: str = "failed",
        title_token_type: str = "strong",
        title_max_length: int = 100,
        sleep: Sleeper = delay,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.account_id = account_id
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
        )
        self._dispatch_max_retries = max(1, int(dispatch_max_retries))
        self._dispatch_retry_delay = float(dispatch_retry_delay)
        self._server_error_max_retries = max(1, int(server_error_max_retries))
        self._server_error_retry_delay = float(server_error_retry_delay)
        self._failure_marker = failure_marker.strip().lower()
        self._title_token_type = title_token_type
        self._title_max_length = int(title_max_length)
        self._sleep = sleep
        self._clock = clock

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> TaskLifecycleClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch_with_retry(self) -> Ok[str] | Exhausted:
        """
        Submit a new task, retrying rejected submissions.

        Returns Ok(task_id) on the first accepted attempt, Exhausted once every
        attempt was rejected. Unexpected HTTP statuses raise TaskApiError.
        """
        max_attempts = self._dispatch_max_retries

        for attempt in range(1, max_attempts + 1):
            with Profiler(f"Dispatch attempt {attempt}"):
                response = await self._dispatch_once()

            if response.accepted and response.task_id is not None:
                logger.info("Task dispatched task_id=%s attempt=%d", response.task_id, attempt)
                return Ok(response.task_id)

            logger.warning("Dispatch rejected (%d/%d): %s", attempt, max_attempts, response.error)

            if attempt < max_attempts:
                logger.info("Retrying dispatch in %.1fs...", self._dispatch_retry_delay)
                await self._sleep(self._dispatch_retry_delay)

        logger.error("Dispatch: max retries reached (%d)", max_attempts)
        return Exhausted(attempts=max_attempts)

    async def _dispatch_once(self) -> DispatchResponse:
        response = await self._client.post(
            "/task/dispatch",
            params={"accountId": self.account_id},
            json={},
        )
        if response.status_code not in (200, 404):
            raise TaskApiError(
                f"Dispatch failed with HTTP {response.status_code}",
                status_code=response.status_code,
                body=_error_body(response),
            )

        data = _json_body(response)
        logger.debug("Dispatch response status=%d body=%r", response.status_code, data)
        return DispatchResponse.from_http(response.status_code, data)

    # ------------------------------------------------------------------
    # Status / polling
    # ------------------------------------------------------------------

    async def _get_with_server_retry(self, path: str, what: str) -> httpx.Response:
        attempts = self._server_error_max_retries
        attempt = 1

        while True:
            response = await self._client.get(path)
            if response.status_code < 500:
                return response

            logger.warning("%s: server error HTTP %d (%d/%d)", what, response.status_code, attempt, attempts)
            if attempt >= attempts:
                raise ServerError(
                    f"{what} failed with HTTP {response.status_code} after {attempts} attempts",
                    status_code=response.status_code,
                    body=_error_body(response),
                )

            attempt += 1
            await self._sleep(self._server_error_retry_delay)

    async def fetch_progress(self, task_id: str) -> TaskProgress:
        response = await self._get_with_server_retry(f"/tasks/progress/{task_id}", "Progress fetch")
        if response.status_code == 404:
            return TaskProgress()
        if not response.is_success:
            raise TaskApiError(
                f"Progress fetch failed with HTTP {response.status_code}",
                status_code=response.status_code,
                body=_error_body(response),
            )
        return TaskProgress.from_json(_json_body(response))

    async def fetch_completed(self, task_id: str) -> CompletedTask | None:
        """Completion metadata, or None while the task is not visible yet (404)."""
        response = await self._get_with_server_retry(f"/tasks/completed/{task_id}", "Completion fetch")
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise TaskApiError(
                f"Completion fetch failed with HTTP {response.status_code}",
                status_code=response.status_code,
                body=_error_body(response),
            )
        return CompletedTask.from_json(task_id, _json_body(response))

    async def check_status(self, task_id: str) -> PollStatus:
        progress = await self.fetch_progress(task_id)
        logger.info(
            "Task %s step=%s progress=%s %s",
            task_id,
            progress.current_step or "-",
            "-" if progress.progress is None else f"{progress.progress:.0f}%",
            progress.progress_bar or "",
        )

        step = (progress.current_step or "").lower()
        if self._failure_marker and self._failure_marker in step:
            raise TaskFailedError(task_id, progress.current_step or "")

        completed = await self.fetch_completed(task_id)
        if completed is None:
            logger.debug("Task %s not completed yet (404)", task_id)
            return PollStatus.RETRY
        if completed.downloads:
            return PollStatus.SUCCESS
        return PollStatus.RETRY

    async def poll_until_success(
        self,
        task_id: str,
        max_duration: float,
        interval: float,
    ) -> Ok[str] | TimedOut:
        """
        Call check_status every `interval` seconds until it reports success.

        Gives up once `max_duration` has elapsed; the last sleep is shortened so
        the ceiling is never overshot by more than one interval.
        """
        started = self._clock()
        deadline = started + max(0.0, float(max_duration))

        while True:
            if await self.check_status(task_id) == PollStatus.SUCCESS:
                logger.info("Task %s completed after %.1fs", task_id, self._clock() - started)
                return Ok(task_id)

            now = self._clock()
            if now >= deadline:
                logger.warning("Task %s polling timed out after %.1fs", task_id, now - started)
                return TimedOut(elapsed=now - started)

            await self._sleep(min(float(interval), deadline - now))

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    async def download_results(self, task_id: str) -> DownloadedResult:
        completed = await self.fetch_completed(task_id)
        if completed is None:
            raise DataIntegrityError(task_id, "completed task not found")
        if not completed.tokens:
            raise DataIntegrityError(task_id, "completed task has no tokens")

        title = extract_title(
            completed.tokens,
            token_type=self._title_token_type,
            max_length=self._title_max_length,
        )
        if not title:
            raise DataIntegrityError(task_id, "no title found in content tokens")
        if not completed.downloads:
            raise DataIntegrityError(task_id, "completed task has no downloads")

        total = len(completed.downloads)
        artifacts: list[bytes] = []
        for index in range(total):
            artifacts.append(await self._download_artifact(task_id, index, total))

        return DownloadedResult(task_id=task_id, artifacts=artifacts, content=completed.content, title=title)

    async def _download_artifact(self, task_id: str, index: int, total: int) -> bytes:
        path = f"/tasks/completed/{task_id}/downloads/{index}"

        async with self._client.stream("GET", path) as response:
            if not response.is_success:
                await response.aread()
                raise TaskApiError(
                    f"Artifact {index} download failed with HTTP {response.status_code}",
                    status_code=response.status_code,
                    body=_error_body(response),
                )

            expected = int(response.headers.get("content-length") or 0)
            buf = bytearray()
            last_decile = -1
            async for chunk in response.aiter_bytes():
                buf.extend(chunk)
                if expected:
                    decile = min(10, len(buf) * 10 // expected)
                    if decile > last_decile:
                        last_decile = decile
                        logger.info(
                            "Task %s artifact %d/%d: %d%%",
                            task_id,
                            index + 1,
                            total,
                            decile * 10,
                        )

        logger.info("Task %s artifact %d/%d downloaded (%d bytes)", task_id, index + 1, total, len(buf))
        return bytes(buf)

    # ------------------------------------------------------------------
    # Account listing / archive
    # ------------------------------------------------------------------

    async def list_completed_for_account(self) -> list[CompletedTaskSummary]:
        response = await self._client.get(f"/tasks/completed/account/{self.account_id}")
        if response.status_code == 404:
            return []
        if not response.is_success:
            raise TaskApiError(
                f"Listing completed tasks failed with HTTP {response.status_code}",
                status_code=response.status_code,
                body=_error_body(response),
            )

        items = _json_body(response).get("completedTasks")
        if not isinstance(items, list):
            return []
        return [CompletedTaskSummary.from_json(item) for item in items if isinstance(item, dict)]

    async def archive(self, task_id: str) -> dict[str, Any]:
        response = await self._client.post(f"/tasks/completed/{task_id}/archive")
        if not response.is_success:
            raise TaskApiError(
                f"Archiving task {task_id} failed with HTTP {response.status_code}",
                status_code=response.status_code,
                body=_error_body(response),
            )
        logger.info("Task %s archived", task_id)
        return _json_body(response)
