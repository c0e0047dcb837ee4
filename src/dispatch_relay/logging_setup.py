# src/dispatch_relay/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable while the pipeline runs:
    - allow dispatch_relay logs, except the analytics sync below WARNING
    - suppress httpx/httpcore request lines unless WARNING+
    - suppress Python warnings (captured as 'py.warnings') unless ERROR+
    - any other third party only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        # Our logs. The analytics sync runs in the background on its own schedule;
        # its full chatter still lands in relay.log.
        if name.startswith("dispatch_relay."):
            if name.startswith("dispatch_relay.analytics."):
                return record.levelno >= logging.WARNING
            return True

        # httpx logs one INFO line per request; polling makes that a flood.
        if name.startswith(("httpx", "httpcore")):
            return record.levelno >= logging.WARNING

        if name == "py.warnings":
            return record.levelno >= logging.ERROR

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/relay",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Console gets the filtered view, relay.log under `log_dir` gets everything
    at `file_level`. Call once from the CLI entrypoint before anything logs.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "relay.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Re-running setup (tests, repeated main()) must not duplicate output.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    # Downloads and uploads can run for an hour; the file keeps the whole trail.
    logfile = logging.FileHandler(str(log_file), encoding="utf-8")
    logfile.setLevel(file_level)
    logfile.setFormatter(fmt)
    root.addHandler(logfile)

    logging.captureWarnings(True)

    # httpcore DEBUG traces every socket event, too much even for the file.
    logging.getLogger("httpcore").setLevel(logging.INFO)
