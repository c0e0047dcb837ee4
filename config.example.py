# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real account ids or endpoints you consider private. Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "RELAY_APP_NAME": "App display name (default: dispatch-relay).",
    "RELAY_LOG_LEVEL": "Console logging level (default: INFO).",
    # Remote task service
    "RELAY_BASE_URL": "Base URL of the task service (default: http://localhost:8080).",
    "RELAY_ACCOUNT_ID": "Account identity sent with dispatches and listings (default: 1).",
    "RELAY_HTTP_TIMEOUT_SECONDS": "HTTP request timeout (default: 60).",
    # Dispatch / polling
    "RELAY_DISPATCH_MAX_RETRIES": "Dispatch attempts before giving up (default: 300).",
    "RELAY_DISPATCH_RETRY_DELAY_SECONDS": "Wait between rejected dispatches (default: 2).",
    "RELAY_SERVER_ERROR_MAX_RETRIES": "Attempts per progress/completion fetch on 5xx (default: 5).",
    "RELAY_SERVER_ERROR_RETRY_DELAY_SECONDS": "Wait between 5xx retries (default: 30).",
    "RELAY_POLL_INTERVAL_SECONDS": "Wait between status checks (default: 10).",
    "RELAY_POLL_TIMEOUT_SECONDS": "Give up polling a task after this long (default: 3600).",
    "RELAY_FAILURE_MARKER": "Progress step text that means the task failed (default: failed).",
    # Title extraction
    "RELAY_TITLE_TOKEN_TYPE": "Token type searched for the title (default: strong).",
    "RELAY_TITLE_MAX_LENGTH": "Titles must be shorter than this (default: 100).",
    # Pipeline
    "RELAY_PRODUCER_COOLDOWN_SECONDS": "Wait after each dispatch attempt (default: 900).",
    "RELAY_QUEUE_IDLE_INTERVAL_SECONDS": "Consumer re-check interval on empty queue (default: 0.1).",
    "RELAY_DISPATCHED_QUEUE": "Queue name for dispatched task ids (default: dispatched-tasks).",
    "RELAY_COMPLETED_QUEUE": "Queue name for downloaded results (default: completed-tasks).",
    "RELAY_UPLOAD_LOCK_KEY": "Lock key guarding the upload resource (default: upload).",
    "RELAY_LOCK_MAX_RETRIES": "Extra lock acquisition attempts (default: 3).",
    "RELAY_LOCK_RETRY_DELAY_SECONDS": "Wait between lock attempts (default: 0.1).",
    "RELAY_POST_DOWNLOAD_DELAY_SECONDS": "Pause after saving an artifact (default: 2).",
    "RELAY_RECOVER_ON_START": "Re-queue already completed tasks at start (true/false).",
    "RELAY_ARCHIVE_AFTER_UPLOAD": "Archive a task once its upload succeeds (true/false).",
    "RELAY_SHUTDOWN_GRACE_SECONDS": "How long stop waits for in-flight items before cancelling (default: 300).",
    # Upload
    "RELAY_UPLOAD_COMMAND": "Command run per artifact with <path> <title> appended (empty => log only).",
    # Analytics sync
    "RELAY_ANALYTICS_SOURCE": "'module:factory' of the analytics scraper (empty => disabled).",
    "RELAY_ANALYTICS_CRON": "Cron expression for analytics syncs, local time (default: 0 2 * * *).",
    "RELAY_ANALYTICS_TOPIC": "Publish topic for sync status (default: sync-channel-analytics).",
    # Paths (gitignored)
    "RELAY_DATA_DIR": "Local data directory, also holds relay.log (default: .local/relay).",
    "RELAY_OUTPUT_DIR": "Where artifacts are saved (default: <data_dir>/downloads).",
}
