# src/dispatch_relay/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs one command (default: run).
"""

from __future__ import annotations

import asyncio
import logging
import sys

from ..cli.bootstrap import create_app_state
from ..cli.commands import build_default_registry
from ..config import get_settings
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _amain(argv: list[str]) -> str:
    settings = get_settings()
    state = create_app_state(settings=settings)
    try:
        return await build_default_registry().handle(state, argv)
    finally:
        await state.aclose()


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    args = list(sys.argv[1:] if argv is None else argv) or ["run"]
    logger.info("Starting %s (%s)...", settings.app_name, args[0])

    try:
        output = asyncio.run(_amain(args))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return 130
    except Exception:
        logger.exception("Command %s failed", args[0])
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
