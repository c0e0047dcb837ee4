# src/dispatch_relay/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Every value is a plain scalar; nothing nested.
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "RELAY"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Remote task service ----
    base_url: str
    account_id: str
    http_timeout_seconds: float

    # ---- Dispatch / polling ----
    dispatch_max_retries: int
    dispatch_retry_delay_seconds: float
    server_error_max_retries: int
    server_error_retry_delay_seconds: float
    poll_interval_seconds: float
    poll_timeout_seconds: float
    failure_marker: str

    # ---- Title extraction ----
    title_token_type: str
    title_max_length: int

    # ---- Pipeline ----
    producer_cooldown_seconds: float
    queue_idle_interval_seconds: float
    dispatched_queue: str
    completed_queue: str
    upload_lock_key: str
    lock_max_retries: int
    lock_retry_delay_seconds: float
    post_download_delay_seconds: float
    recover_on_start: bool
    archive_after_upload: bool
    shutdown_grace_seconds: float

    # ---- Upload ----
    upload_command: str

    # ---- Analytics sync ----
    analytics_source: str
    analytics_cron: str
    analytics_topic: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    output_dir: Path

    @staticmethod
    def from_env() -> "Settings":
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/relay"))

        return Settings(
            app_name=_env(_k("APP_NAME"), "dispatch-relay"),
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            base_url=_env(_k("BASE_URL"), "http://localhost:8080").rstrip("/"),
            account_id=_env(_k("ACCOUNT_ID"), "1").strip(),
            http_timeout_seconds=_env_float(_k("HTTP_TIMEOUT_SECONDS"), 60.0),
            dispatch_max_retries=_env_int(_k("DISPATCH_MAX_RETRIES"), 300),
            dispatch_retry_delay_seconds=_env_float(_k("DISPATCH_RETRY_DELAY_SECONDS"), 2.0),
            server_error_max_retries=_env_int(_k("SERVER_ERROR_MAX_RETRIES"), 5),
            server_error_retry_delay_seconds=_env_float(_k("SERVER_ERROR_RETRY_DELAY_SECONDS"), 30.0),
            poll_interval_seconds=_env_float(_k("POLL_INTERVAL_SECONDS"), 10.0),
            poll_timeout_seconds=_env_float(_k("POLL_TIMEOUT_SECONDS"), 3600.0),
            failure_marker=_env(_k("FAILURE_MARKER"), "failed"),
            title_token_type=_env(_k("TITLE_TOKEN_TYPE"), "strong"),
            title_max_length=_env_int(_k("TITLE_MAX_LENGTH"), 100),
            producer_cooldown_seconds=_env_float(_k("PRODUCER_COOLDOWN_SECONDS"), 15 * 60.0),
            queue_idle_interval_seconds=_env_float(_k("QUEUE_IDLE_INTERVAL_SECONDS"), 0.1),
            dispatched_queue=_env(_k("DISPATCHED_QUEUE"), "dispatched-tasks"),
            completed_queue=_env(_k("COMPLETED_QUEUE"), "completed-tasks"),
            upload_lock_key=_env(_k("UPLOAD_LOCK_KEY"), "upload"),
            lock_max_retries=_env_int(_k("LOCK_MAX_RETRIES"), 3),
            lock_retry_delay_seconds=_env_float(_k("LOCK_RETRY_DELAY_SECONDS"), 0.1),
            post_download_delay_seconds=_env_float(_k("POST_DOWNLOAD_DELAY_SECONDS"), 2.0),
            recover_on_start=_env_bool(_k("RECOVER_ON_START"), False),
            archive_after_upload=_env_bool(_k("ARCHIVE_AFTER_UPLOAD"), False),
            shutdown_grace_seconds=_env_float(_k("SHUTDOWN_GRACE_SECONDS"), 300.0),
            upload_command=_env(_k("UPLOAD_COMMAND"), "").strip(),
            analytics_source=_env(_k("ANALYTICS_SOURCE"), "").strip(),
            analytics_cron=_env(_k("ANALYTICS_CRON"), "0 2 * * *").strip(),
            analytics_topic=_env(_k("ANALYTICS_TOPIC"), "sync-channel-analytics"),
            data_dir=data_dir,
            output_dir=_env_path(_k("OUTPUT_DIR"), data_dir / "downloads"),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Return the process settings, reading the environment on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
