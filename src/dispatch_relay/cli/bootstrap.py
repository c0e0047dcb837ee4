# src/dispatch_relay/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- builds the single QueueBroker and KeyedLock for the process,
- wires concrete implementations (HTTP client, uploader, analytics) into AppState.
"""

from __future__ import annotations

import logging

from ..analytics.events import EventChannel
from ..analytics.publisher import PublisherService
from ..analytics.sync_scheduler import AnalyticsSyncScheduler, load_analytics_source
from ..config import Settings, get_settings
from ..coordination.keyed_lock import KeyedLock
from ..coordination.queue_broker import QueueBroker
from ..core.ports import Uploader
from ..core.state import AppState
from ..tasks.task_client import TaskLifecycleClient
from ..uploads.command import CommandUploader
from ..uploads.offline import LoggingUploader

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.output_dir.mkdir(parents=True, exist_ok=True)


def build_client(settings: Settings) -> TaskLifecycleClient:
    return TaskLifecycleClient(
        base_url=settings.base_url,
        account_id=settings.account_id,
        timeout_seconds=settings.http_timeout_seconds,
        dispatch_max_retries=settings.dispatch_max_retries,
        dispatch_retry_delay=settings.dispatch_retry_delay_seconds,
        server_error_max_retries=settings.server_error_max_retries,
        server_error_retry_delay=settings.server_error_retry_delay_seconds,
        failure_marker=settings.failure_marker,
        title_token_type=settings.title_token_type,
        title_max_length=settings.title_max_length,
    )


def build_uploader(settings: Settings) -> Uploader:
    if settings.upload_command:
        return CommandUploader(settings.upload_command)
    logger.warning("RELAY_UPLOAD_COMMAND is not set; uploads will only be logged.")
    return LoggingUploader()


def build_analytics(settings: Settings, channel: EventChannel) -> AnalyticsSyncScheduler | None:
    if not settings.analytics_source:
        return None

    source = load_analytics_source(settings.analytics_source)
    publisher = PublisherService(
        settings.analytics_topic,
        base_url=settings.base_url,
        timeout_seconds=settings.http_timeout_seconds,
    )
    return AnalyticsSyncScheduler(
        source,
        publisher,
        channel,
        cron=settings.analytics_cron,
        account_id=settings.account_id,
    )


def create_app_state(*, settings: Settings | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    channel = EventChannel()
    return AppState(
        settings=settings,
        client=build_client(settings),
        broker=QueueBroker(),
        locks=KeyedLock(),
        uploader=build_uploader(settings),
        channel=channel,
        analytics=build_analytics(settings, channel),
    )
