# src/dispatch_relay/errors.py

"""dispatch-relay exception hierarchy.

Only fatal conditions are exceptions. Retry exhaustion, lock contention and
polling timeouts are returned as values (see core/results.py).
"""

from __future__ import annotations

from typing import Any


class RelayError(Exception):
    """Base exception for all dispatch-relay errors."""


class TaskApiError(RelayError):
    """The remote task service answered with an unexpected status."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ServerError(TaskApiError):
    """5xx responses persisted after all retries."""


class TaskFailedError(RelayError):
    """The remote task reported an irrecoverable failure step."""

    def __init__(self, task_id: str, step: str) -> None:
        self.task_id = task_id
        self.step = step
        super().__init__(f"Task {task_id} failed at step: {step}")


class DataIntegrityError(RelayError):
    """A completed task is missing data we need (title, downloads, tokens)."""

    def __init__(self, task_id: str, reason: str) -> None:
        self.task_id = task_id
        self.reason = reason
        super().__init__(f"Task {task_id}: {reason}")
