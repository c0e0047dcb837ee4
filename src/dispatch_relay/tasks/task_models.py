# src/dispatch_relay/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class PollStatus(StrEnum):
    SUCCESS = "success"
    RETRY = "retry"


class DispatchVerdict(StrEnum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class DispatchResponse:
    verdict: DispatchVerdict
    task_id: str | None
    error: str | None = None

    @classmethod
    def from_http(cls, status_code: int, data: dict[str, Any]) -> DispatchResponse:
        """
        Classify a submit response.

        Accepted: a task id and no non-empty error string.
        Rejected: HTTP 404, a non-empty error string, or no task id at all.
        """
        raw_id = data.get("taskId")
        task_id = str(raw_id) if raw_id not in (None, "") else None
        error = data.get("error")

        if status_code == 404:
            return cls(DispatchVerdict.REJECTED, task_id, error if isinstance(error, str) else "not found")
        if isinstance(error, str) and error != "":
            return cls(DispatchVerdict.REJECTED, task_id, error)
        if task_id is None:
            return cls(DispatchVerdict.REJECTED, None, "response carried no taskId")
        return cls(DispatchVerdict.ACCEPTED, task_id)

    @property
    def accepted(self) -> bool:
        return self.verdict == DispatchVerdict.ACCEPTED


@dataclass(slots=True, frozen=True)
class TaskProgress:
    current_step: str | None = None
    progress_bar: str | None = None
    progress: float | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> TaskProgress:
        progress = data.get("progress")
        try:
            pct = float(progress) if progress is not None else None
        except (TypeError, ValueError):
            pct = None
        step = data.get("currentStep")
        bar = data.get("progressBar")
        return cls(
            current_step=str(step) if step is not None else None,
            progress_bar=str(bar) if bar is not None else None,
            progress=pct,
        )


@dataclass(slots=True)
class CompletedTask:
    task_id: str
    downloads: list[str] = field(default_factory=list)
    content: str = ""
    tokens: list[Any] = field(default_factory=list)

    @classmethod
    def from_json(cls, task_id: str, data: dict[str, Any]) -> CompletedTask:
        downloads = data.get("downloads")
        tokens = data.get("tokens")
        return cls(
            task_id=task_id,
            downloads=[str(d) for d in downloads] if isinstance(downloads, list) else [],
            content=str(data.get("content") or ""),
            tokens=tokens if isinstance(tokens, list) else [],
        )


@dataclass(slots=True)
class DownloadedResult:
    task_id: str
    artifacts: list[bytes]
    content: str
    title: str


@dataclass(slots=True, frozen=True)
class CompletedTaskSummary:
    task_id: str
    raw: dict[str, Any]

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> CompletedTaskSummary:
        raw_id = data.get("taskId", data.get("id", ""))
        return cls(task_id=str(raw_id), raw=data)
