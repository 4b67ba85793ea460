"""CLI-side handler wrappers over the command runtime and resolver."""

from __future__ import annotations

from nexus_builder.command_runtime import CommandJob, CommandRuntime
from nexus_builder.resolver import CommandResolver, Resolution, SessionContext


class CliCommandHandler:
    """Simple facade over the async command runtime, with optional natural-language input."""

    def __init__(self, runtime: CommandRuntime, resolver: CommandResolver | None = None) -> None:
        self._runtime = runtime
        self._resolver = resolver

    def list_recent_jobs(self, limit: int = 20) -> list[CommandJob]:
        return self._runtime.list_recent_jobs(limit=limit)

    def forget_session(self, session_id: str) -> bool:
        """Drop the resolver's memory of ``session_id``; ``False`` when there was nothing to drop."""
        if self._resolver is None:
            return False
        return self._resolver.clear(session_id)

    async def handle_text(self, text: str, session_id: str | None = None) -> tuple[Resolution | None, CommandJob | None]:
        """Run ``text`` as a command when it validates, otherwise resolve it first.

        Returns the resolution (``None`` when the text was already a command or could not
        be mapped) and the executed job (``None`` when nothing ran).
        """
        if self._resolver is None or self._runtime_accepts(text):
            return None, await self._runtime.execute(text)

        context = SessionContext(
            world_snapshot=self._runtime.state,
            recent_commands=self._runtime.recent_commands(),
        )
        resolution = await self._resolver.resolve(text, session_id, context)
        if resolution is None or resolution.needs_clarification or not resolution.command:
            return resolution, None
        return resolution, await self._runtime.execute(resolution.command)

    def _runtime_accepts(self, text: str) -> bool:
        return self._runtime.validator.validate(text, self._runtime.state).is_valid
