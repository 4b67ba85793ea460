"""CLI startup entrypoint for Nexus World Builder."""

from __future__ import annotations

import asyncio

import typer
from rich import print

from nexus_builder.cli import CliCommandHandler
from nexus_builder.command_runtime import CommandJob, CommandRuntime, InMemoryHistoryStore, JsonlHistoryStore
from nexus_builder.commands import CommandCatalog, CommandValidator
from nexus_builder.config import settings
from nexus_builder.engine import CommandEngine
from nexus_builder.models import GameState, Size
from nexus_builder.resolver import CommandResolver, OpenAIChatClient, SessionContext, SessionStore
from nexus_builder.telemetry import configure_logging
from nexus_builder.vocabulary import Biome
from nexus_builder.world import Density, GenerationConfig, WorldEventGenerator, generate_world

app = typer.Typer(help="Nexus World Builder command terminal")

EXIT_WORDS = {"exit", "quit"}
HISTORY_LIMIT = 10


def _build_resolver(catalog: CommandCatalog) -> CommandResolver:
    client = None
    if settings.model_api_key:
        client = OpenAIChatClient(
            api_key=settings.model_api_key,
            endpoint=settings.model_endpoint,
            model=settings.model_name,
            timeout_seconds=settings.model_timeout_seconds,
        )
    return CommandResolver(
        catalog,
        client=client,
        sessions=SessionStore(max_messages=settings.session_message_cap, max_sessions=settings.max_sessions),
        timeout_seconds=settings.model_timeout_seconds,
    )


def _build_runtime() -> CommandRuntime:
    validator = CommandValidator(agent_cap=settings.agent_cap)
    history_store = JsonlHistoryStore(settings.history_path) if settings.history_path else InMemoryHistoryStore()
    return CommandRuntime(
        CommandEngine(validator.catalog),
        validator,
        state=GameState(world_size=Size(settings.world_width, settings.world_height)),
        history_store=history_store,
    )


def _build_handler() -> CliCommandHandler:
    runtime = _build_runtime()
    return CliCommandHandler(runtime=runtime, resolver=_build_resolver(runtime.validator.catalog))


def _job_summary(job: CommandJob) -> dict:
    summary: dict = {"command": job.command, "status": job.status.value}
    if job.output:
        summary["output"] = job.output
    if job.errors:
        summary["errors"] = job.errors
    if job.warnings:
        summary["warnings"] = job.warnings
    if job.points:
        summary["points"] = job.points
    return summary


@app.callback()
def _configure() -> None:
    configure_logging(settings.log_level)


@app.command()
def start() -> None:
    """Show runtime configuration."""
    print(
        {
            "app_name": settings.app_name,
            "world_size": f"{settings.world_width}x{settings.world_height}",
            "agent_cap": settings.agent_cap,
            "model_endpoint": settings.model_endpoint,
            "model_name": settings.model_name,
            "model_configured": bool(settings.model_api_key),
            "history_path": settings.history_path,
        }
    )


@app.command()
def generate(
    seed: str = typer.Option(..., help="World seed"),
    width: int = typer.Option(None, help="World width (defaults to NEXUS_WORLD_WIDTH)"),
    height: int = typer.Option(None, help="World height (defaults to NEXUS_WORLD_HEIGHT)"),
    biome: Biome = typer.Option(Biome.MATRIX, help="Terrain biome"),
    difficulty: int = typer.Option(1, help="Difficulty 1-10"),
    obstacles: float = typer.Option(0.05, help="Obstacle density"),
    datanodes: float = typer.Option(0.02, help="Data node density"),
    terminals: float = typer.Option(0.01, help="Terminal density"),
    portals: float = typer.Option(0.004, help="Portal density"),
    full: bool = typer.Option(False, help="Print every object instead of a summary"),
) -> None:
    """Generate a world template from a seed."""
    try:
        config = GenerationConfig(
            seed=seed,
            width=width or settings.world_width,
            height=height or settings.world_height,
            biome=biome,
            difficulty=difficulty,
            density=Density(obstacles=obstacles, datanodes=datanodes, terminals=terminals, portals=portals),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    template = generate_world(config)
    if full:
        print(template.to_dict())
        return

    counts: dict[str, int] = {}
    for obj in template.objects:
        counts[obj.type.value] = counts.get(obj.type.value, 0) + 1
    print(
        {
            "id": template.id,
            "name": template.name,
            "size": f"{template.size.width}x{template.size.height}",
            "objects": counts,
            "spawn_points": [(point.x, point.y) for point in template.spawn_points],
        }
    )


@app.command()
def event(
    seed: str = typer.Option(None, help="Event seed; omit for a clock-seeded event"),
    width: int = typer.Option(None, help="World width"),
    height: int = typer.Option(None, help="World height"),
) -> None:
    """Draw one random world event."""
    generator = WorldEventGenerator(seed)
    world_event = generator.generate_event(Size(width or settings.world_width, height or settings.world_height))
    print(world_event.to_dict())


@app.command()
def validate(command: str) -> None:
    """Validate a command string without executing it."""
    validator = CommandValidator(agent_cap=settings.agent_cap)
    state = GameState(world_size=Size(settings.world_width, settings.world_height))
    result = validator.validate(command, state)
    print({"command": command, "is_valid": result.is_valid, "errors": list(result.errors), "warnings": list(result.warnings)})
    if not result.is_valid:
        raise typer.Exit(code=1)


@app.command()
def resolve(
    text: str,
    session_id: str = typer.Option(None, help="Resume an existing resolver session"),
) -> None:
    """Map natural language onto a command string."""
    resolver = _build_resolver(CommandCatalog.default())
    context = SessionContext(world_snapshot=GameState(world_size=Size(settings.world_width, settings.world_height)))
    resolution = asyncio.run(resolver.resolve(text, session_id, context))
    if resolution is None:
        print({"text": text, "resolution": None})
        raise typer.Exit(code=1)

    print(
        {
            "command": resolution.command,
            "confidence": resolution.confidence,
            "explanation": resolution.explanation,
            "source": resolution.source,
            "session_id": resolution.session_id,
            "needs_clarification": resolution.needs_clarification,
            "clarification_prompt": resolution.clarification_prompt,
        }
    )


@app.command()
def run(commands: list[str] = typer.Argument(..., help="Commands executed in order against one world")) -> None:
    """Execute commands in order and print each result with the final status."""
    runtime = _build_runtime()

    async def _run() -> list[CommandJob]:
        jobs = [await runtime.execute(command) for command in commands]
        await runtime.stop()
        return jobs

    jobs = asyncio.run(_run())
    stats = runtime.state.player_stats
    print(
        {
            "results": [_job_summary(job) for job in jobs],
            "score": stats.score,
            "agents": len(runtime.state.agents),
            "commands_executed": stats.commands_executed,
        }
    )


@app.command()
def terminal(session_id: str = typer.Option(None, help="Resolver session id to reuse")) -> None:
    """Interactive terminal accepting commands or plain language."""
    handler = _build_handler()
    session = session_id or SessionStore.new_session_id()
    print(
        {
            "terminal": "started",
            "session_id": session,
            "hint": "Type help for commands, history for past jobs, forget to reset the session, exit to quit.",
        }
    )

    async def _loop() -> None:
        while True:
            line = await asyncio.to_thread(typer.prompt, ">", default="", show_default=False)
            text = line.strip()
            if not text:
                continue
            if text.lower() in EXIT_WORDS:
                break
            if text.lower() == "history":
                jobs = handler.list_recent_jobs(limit=HISTORY_LIMIT)
                print({"history": [f"{job.status.value}: {job.command}" for job in jobs]})
                continue
            if text.lower() == "forget":
                print({"forgotten": handler.forget_session(session), "session_id": session})
                continue

            resolution, job = await handler.handle_text(text, session)
            if resolution is not None:
                print({"resolved": resolution.command, "confidence": resolution.confidence, "source": resolution.source})
                if resolution.needs_clarification:
                    print({"clarification": resolution.clarification_prompt})
                    continue
            if job is None:
                print({"error": f"Could not interpret: {text}"})
                continue
            print(_job_summary(job))

    try:
        asyncio.run(_loop())
    except (EOFError, KeyboardInterrupt, typer.Abort):
        pass
    print({"terminal": "stopped"})


if __name__ == "__main__":
    app()
