from __future__ import annotations

import asyncio
import random
from datetime import datetime, timezone
from pathlib import Path

from nexus_builder.cli import CliCommandHandler
from nexus_builder.command_runtime import CommandJobStatus, CommandRuntime, JsonlHistoryStore
from nexus_builder.commands import CommandValidator
from nexus_builder.engine import CommandEngine
from nexus_builder.models import Point
from nexus_builder.resolver import CommandResolver
from nexus_builder.world import WorldEvent, WorldEventType
from nexus_builder.world.events import EmpBurstEffects


class ExplodingEngine(CommandEngine):
    def execute(self, intent, state):
        raise RuntimeError("boom")


def _runtime(**kwargs) -> CommandRuntime:
    return CommandRuntime(CommandEngine(rng=random.Random(0)), CommandValidator(), **kwargs)


def test_runtime_executes_command_successfully() -> None:
    async def _run():
        runtime = _runtime()
        await runtime.start()
        job_id = runtime.submit_command("DeployAgent[2] center patrol")
        await asyncio.wait_for(runtime.join(), timeout=1)
        job = runtime.get_job(job_id)
        await runtime.stop()
        return job, runtime

    job, runtime = asyncio.run(_run())
    assert job.status == CommandJobStatus.SUCCEEDED
    assert job.points == 20
    assert len(runtime.state.agents) == 2
    assert runtime.state.player_stats.score == 20


def test_invalid_command_is_rejected_without_state_change() -> None:
    async def _run():
        runtime = _runtime()
        job = await runtime.execute("ScanArea 100 100 5")
        await runtime.stop()
        return job, runtime

    job, runtime = asyncio.run(_run())
    assert job.status == CommandJobStatus.REJECTED
    assert len(job.errors) == 2
    assert runtime.state.player_stats.commands_executed == 0


def test_commands_run_in_submission_order() -> None:
    async def _run():
        runtime = _runtime()
        await runtime.start()
        for command in ("DeployAgent[1] north", "DeployAgent[1] south", "ListAgents"):
            runtime.submit_command(command)
        await asyncio.wait_for(runtime.join(), timeout=1)
        await runtime.stop()
        return runtime

    runtime = asyncio.run(_run())
    assert [agent.name for agent in runtime.state.agents] == ["Agent-1", "Agent-2"]
    assert runtime.recent_commands() == ["DeployAgent[1] north", "DeployAgent[1] south", "ListAgents"]
    assert runtime.recent_commands(limit=1) == ["ListAgents"]


def test_engine_exception_marks_job_failed() -> None:
    async def _run():
        runtime = CommandRuntime(ExplodingEngine(), CommandValidator())
        job = await runtime.execute("Status")
        await runtime.stop()
        return job

    job = asyncio.run(_run())
    assert job.status == CommandJobStatus.FAILED
    assert "RuntimeError" in job.errors[0]


def test_clear_terminal_empties_transcript() -> None:
    async def _run():
        runtime = _runtime()
        await runtime.execute("Status")
        before = runtime.transcript
        await runtime.execute("ClearTerminal")
        await runtime.stop()
        return before, runtime.transcript

    before, after = asyncio.run(_run())
    assert before[0] == "> Status"
    assert after == []


def test_apply_event_updates_state_and_transcript() -> None:
    async def _run():
        runtime = _runtime()
        job = await runtime.execute("DeployAgent[1] 10 10")
        await runtime.stop()
        return runtime, job

    runtime, job = asyncio.run(_run())
    assert job.status == CommandJobStatus.SUCCEEDED
    event = WorldEvent(
        id="event_1",
        type=WorldEventType.EMP_BURST,
        position=Point(10, 10),
        radius=5,
        duration_ms=30_000,
        effects=EmpBurstEffects(),
        message="EMP BURST detected at (10, 10)! Agent systems compromised.",
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )

    state = runtime.apply_event(event)

    assert state.agents[0].energy == 50
    assert runtime.transcript[-1].startswith("[emp_burst]")


def test_json_history_store_roundtrip(tmp_path: Path) -> None:
    store = JsonlHistoryStore(tmp_path / "history" / "commands.jsonl")

    async def _run() -> str:
        runtime = _runtime(history_store=store)
        job = await runtime.execute("DeployAgent[11] east")
        await runtime.stop()
        return job.id

    job_id = asyncio.run(_run())
    recent = store.list_recent(limit=5)

    assert recent[0].id == job_id
    assert recent[0].status == CommandJobStatus.SUCCEEDED
    assert recent[0].warnings == ["Deploying more than 10 agents may impact performance"]
    assert recent[0].points == 110

    fresh = CliCommandHandler(_runtime(history_store=store))
    assert fresh.list_recent_jobs(limit=5)[0].id == job_id


def test_cli_handler_resolves_plain_language() -> None:
    async def _run():
        runtime = _runtime()
        handler = CliCommandHandler(runtime, CommandResolver())
        direct = await handler.handle_text("Status")
        resolved = await handler.handle_text("deploy three agents north patrol", "s1")
        unknown = await handler.handle_text("sing me a song", "s1")
        await runtime.stop()
        return direct, resolved, unknown, runtime

    direct, resolved, unknown, runtime = asyncio.run(_run())

    assert direct[0] is None
    assert direct[1] is not None and direct[1].status == CommandJobStatus.SUCCEEDED
    resolution, job = resolved
    assert resolution is not None and resolution.command == "DeployAgent[3] north patrol"
    assert job is not None and job.status == CommandJobStatus.SUCCEEDED
    assert len(runtime.state.agents) == 3
    assert unknown == (None, None)


def test_cli_handler_forgets_resolver_session() -> None:
    async def _run():
        runtime = _runtime()
        resolver = CommandResolver()
        handler = CliCommandHandler(runtime, resolver)
        await handler.handle_text("deploy two agents east patrol", "s1")
        await runtime.stop()
        return handler, resolver

    handler, resolver = asyncio.run(_run())

    assert "s1" in resolver.sessions
    assert handler.forget_session("s1") is True
    assert "s1" not in resolver.sessions
    assert handler.forget_session("s1") is False
    assert CliCommandHandler(_runtime()).forget_session("s1") is False
