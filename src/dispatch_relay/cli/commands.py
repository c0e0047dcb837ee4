# src/dispatch_relay/cli/commands.py

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Awaitable, Callable

from ..core.results import Ok
from ..core.state import AppState
from ..pipeline.orchestrator import PipelineOrchestrator

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple sub-command registry used by the CLI (run, dispatch, poll, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def help_text(self) -> str:
        lines = ["Available commands:"]
        for name in sorted(self._help):
            lines.append(f"  {name:<10} {self._help[name]}")
        return "\n".join(lines)

    async def handle(self, state: AppState, argv: list[str]) -> str:
        """Run argv[0] with the remaining arguments; returns text to print."""
        if not argv:
            return self.help_text()

        name = argv[0].lower()
        args = argv[1:]

        if name in ("help", "-h", "--help"):
            return self.help_text()

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: {name}. Use 'help' to list available commands."

        return await handler(state, args)


async def cmd_run(state: AppState, args: list[str]) -> str:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Some platforms/loops cannot install signal handlers.
            pass

    logger.info("Pipeline running. Press Ctrl+C to stop.")
    await PipelineOrchestrator(state).run_until(stop)
    return "Pipeline stopped."


async def cmd_dispatch(state: AppState, args: list[str]) -> str:
    outcome = await state.client.dispatch_with_retry()
    if isinstance(outcome, Ok):
        return f"Dispatched task {outcome.value}"
    return f"Dispatch failed after {outcome.attempts} attempts."


async def cmd_poll(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: poll <task_id>"

    orchestrator = PipelineOrchestrator(state)
    completed = await orchestrator.result_worker.process(args[0])
    if completed is None:
        return f"Task {args[0]} did not complete in time."
    return f"Saved {completed.output_path} (title: {completed.title})"


async def cmd_list(state: AppState, args: list[str]) -> str:
    summaries = await state.client.list_completed_for_account()
    if not summaries:
        return "No completed tasks."
    return "\n".join(s.task_id for s in summaries)


async def cmd_archive(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: archive <task_id>"
    await state.client.archive(args[0])
    return f"Archived task {args[0]}"


def build_default_registry() -> CommandRegistry:
    reg = CommandRegistry()
    reg.register("run", cmd_run, "Run the dispatch/poll/upload pipeline until interrupted.")
    reg.register("dispatch", cmd_dispatch, "Dispatch one task (with retries) and print its id.")
    reg.register("poll", cmd_poll, "poll <task_id>: wait for a task, download and save its artifact.")
    reg.register("list", cmd_list, "List completed tasks for the configured account.", aliases=["ls"])
    reg.register("archive", cmd_archive, "archive <task_id>: archive a completed task.")
    return reg
