"""Natural-language to command-string resolution with a heuristic fallback."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from nexus_builder.commands.catalog import CommandCatalog
from nexus_builder.resolver.heuristics import HEURISTIC_CONFIDENCE, HeuristicCommandMatcher
from nexus_builder.resolver.model_client import ChatModelClient, ModelReply, parse_model_reply
from nexus_builder.resolver.prompt import build_system_prompt
from nexus_builder.resolver.session import Message, SessionContext, SessionStore

DEFAULT_HISTORY_WINDOW = 10


@dataclass(frozen=True, slots=True)
class Resolution:
    command: str
    confidence: float
    explanation: str
    session_id: str
    needs_clarification: bool = False
    clarification_prompt: str | None = None
    source: str = "model"


class CommandResolver:
    """Maps free text to a command string, asking the model first and falling back to keyword heuristics.

    Resolutions of the same session are serialized; the session is only updated once the
    model call has finished, so a cancelled ``resolve`` leaves it as it was.
    """

    def __init__(
        self,
        catalog: CommandCatalog | None = None,
        *,
        client: ChatModelClient | None = None,
        sessions: SessionStore | None = None,
        matcher: HeuristicCommandMatcher | None = None,
        timeout_seconds: float = 8.0,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        logger: logging.Logger | None = None,
    ) -> None:
        self._catalog = catalog if catalog is not None else CommandCatalog.default()
        self._client = client
        self._sessions = sessions if sessions is not None else SessionStore()
        self._matcher = matcher if matcher is not None else HeuristicCommandMatcher()
        self._timeout_seconds = timeout_seconds
        self._history_window = history_window
        self._logger = logger or logging.getLogger("nexus_builder.resolver")

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    async def resolve(
        self,
        text: str,
        session_id: str | None = None,
        context: SessionContext | None = None,
        *,
        user_id: str | None = None,
    ) -> Resolution | None:
        session_id = session_id or self._sessions.new_session_id()
        async with self._sessions.hold(session_id):
            existing = self._sessions.get(session_id)
            base_context = existing.context if existing else SessionContext()
            merged = base_context.merged(context)
            window = self._history_window * 2
            prior = existing.messages[-window:] if existing and window > 0 else []

            if self._client is not None:
                try:
                    raw, reply = await self._ask_model(text, merged, prior)
                except asyncio.TimeoutError:
                    self._logger.warning(
                        "model_resolution_timeout",
                        extra={"session_id": session_id, "timeout_seconds": self._timeout_seconds},
                    )
                except Exception as exc:  # noqa: BLE001 - any model failure falls back to heuristics.
                    self._logger.warning(
                        "model_resolution_failed",
                        extra={"session_id": session_id, "error": f"{type(exc).__name__}: {exc}"},
                    )
                else:
                    self._sessions.commit(
                        session_id,
                        context=merged,
                        messages=(Message("user", text), Message("assistant", raw)),
                        user_id=user_id,
                    )
                    self._logger.info(
                        "model_resolution",
                        extra={"session_id": session_id, "command": reply.command, "confidence": reply.confidence},
                    )
                    return Resolution(
                        command=reply.command,
                        confidence=reply.confidence,
                        explanation=reply.explanation,
                        session_id=session_id,
                        needs_clarification=reply.needs_clarification,
                        clarification_prompt=reply.clarification_prompt,
                        source="model",
                    )

            self._sessions.commit(session_id, context=merged, user_id=user_id)
            world_size = merged.world_snapshot.world_size if merged.world_snapshot else None
            match = self._matcher.match(text, world_size)
            if match is None:
                self._logger.info("heuristic_no_match", extra={"session_id": session_id, "text": text})
                return None

            self._logger.info("heuristic_resolution", extra={"session_id": session_id, "command": match.command})
            return Resolution(
                command=match.command,
                confidence=HEURISTIC_CONFIDENCE,
                explanation=match.explanation,
                session_id=session_id,
                source="heuristic",
            )

    async def clarify(
        self,
        session_id: str,
        original: str,
        answer: str,
        context: SessionContext | None = None,
    ) -> Resolution | None:
        """Re-resolve ``original`` with the user's clarification appended, in the same session."""
        return await self.resolve(f"{original} {answer}".strip(), session_id, context)

    def history(self, session_id: str) -> list[Message]:
        return self._sessions.history(session_id)

    def clear(self, session_id: str) -> bool:
        return self._sessions.clear(session_id)

    async def _ask_model(
        self,
        text: str,
        context: SessionContext,
        prior: list[Message],
    ) -> tuple[str, ModelReply]:
        assert self._client is not None
        messages = [
            Message("system", build_system_prompt(self._catalog, context)),
            *prior,
            Message("user", text),
        ]
        raw = await asyncio.wait_for(self._client.complete(messages), timeout=self._timeout_seconds)
        return raw, parse_model_reply(raw)
