# src/dispatch_relay/pipeline/payloads.py

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class DispatchedPayload:
    """Queue A: a task the remote service accepted and is now executing."""

    task_id: str


@dataclass(slots=True, frozen=True)
class CompletedPayload:
    """Queue B: an artifact saved locally and waiting for upload."""

    output_path: str
    title: str


StagePayload = DispatchedPayload | CompletedPayload
