# tests/test_commands.py

from __future__ import annotations

import pytest

from dispatch_relay.cli.commands import CommandRegistry, build_default_registry


@pytest.mark.asyncio
async def test_command_registry_routes_commands_and_aliases(state) -> None:
    reg = CommandRegistry()
    called: list[list[str]] = []

    async def handler(state, args):
        called.append(args)
        return "done"

    reg.register("go", handler, "go somewhere", aliases=["g"])

    assert await reg.handle(state, ["go", "x"]) == "done"
    assert await reg.handle(state, ["G", "y"]) == "done"
    assert called == [["x"], ["y"]]


@pytest.mark.asyncio
async def test_command_registry_unknown_and_help(state) -> None:
    reg = build_default_registry()

    assert "Unknown command" in await reg.handle(state, ["nope"])
    help_text = await reg.handle(state, ["help"])
    for name in ("run", "dispatch", "poll", "list", "archive"):
        assert name in help_text


@pytest.mark.asyncio
async def test_dispatch_and_list_commands(state, service) -> None:
    reg = build_default_registry()
    service.dispatch_responses = [(200, {"taskId": "T9"})]
    service.account_listing = (200, {"completedTasks": [{"taskId": "A"}, {"taskId": "B"}]})

    assert await reg.handle(state, ["dispatch"]) == "Dispatched task T9"
    assert await reg.handle(state, ["ls"]) == "A\nB"


@pytest.mark.asyncio
async def test_poll_and_archive_commands(state, service) -> None:
    reg = build_default_registry()
    service.add_completed_task("T9", title="night drive")

    assert await reg.handle(state, ["poll"]) == "Usage: poll <task_id>"
    out = await reg.handle(state, ["poll", "T9"])
    assert out.startswith("Saved ") and "night drive" in out

    assert await reg.handle(state, ["archive", "T9"]) == "Archived task T9"
