# src/dispatch_relay/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the pipeline.

The pipeline depends on Protocols instead of concrete implementations, so the
upload side effect, the analytics scraper and the publisher stay swappable and
tests can run with fakes.
"""

from typing import Any, Awaitable, Protocol


class Uploader(Protocol):
    """Downstream side effect for a finished artifact (e.g. a browser upload session)."""

    def upload(self, output_path: str, title: str) -> Awaitable[None]: ...


class AnalyticsSource(Protocol):
    """
    Opaque analytics scraper driven by the sync scheduler.

    start/close bracket the lifetime of whatever session the scraper needs.
    """

    def start(self) -> Awaitable[None]: ...
    def fetch_impressions(self) -> Awaitable[list[Any]]: ...
    def close(self) -> Awaitable[None]: ...


class Publisher(Protocol):
    def publish(self, payload: dict[str, Any]) -> Awaitable[None]: ...
