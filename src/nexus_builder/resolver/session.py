"""Bounded per-conversation memory for the natural-language resolver."""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Sequence
from uuid import uuid4

from nexus_builder.models import Agent, Challenge, GameState
from nexus_builder.world.events import WorldEvent

DEFAULT_MAX_MESSAGES = 20
DEFAULT_MAX_SESSIONS = 256


@dataclass(frozen=True, slots=True)
class Message:
    role: str
    content: str


@dataclass(slots=True)
class SessionContext:
    """World facts the resolver embeds in its system prompt."""

    world_snapshot: GameState | None = None
    recent_commands: list[str] = field(default_factory=list)
    active_challenge: Challenge | None = None
    selected_agent: Agent | None = None
    world_events: list[WorldEvent] = field(default_factory=list)

    def merged(self, update: SessionContext | None) -> SessionContext:
        """Return a copy where every field supplied by ``update`` overwrites this one."""
        if update is None:
            return SessionContext(
                world_snapshot=self.world_snapshot,
                recent_commands=list(self.recent_commands),
                active_challenge=self.active_challenge,
                selected_agent=self.selected_agent,
                world_events=list(self.world_events),
            )
        return SessionContext(
            world_snapshot=update.world_snapshot if update.world_snapshot is not None else self.world_snapshot,
            recent_commands=list(update.recent_commands or self.recent_commands),
            active_challenge=update.active_challenge if update.active_challenge is not None else self.active_challenge,
            selected_agent=update.selected_agent if update.selected_agent is not None else self.selected_agent,
            world_events=list(update.world_events or self.world_events),
        )


@dataclass(slots=True)
class Session:
    id: str
    user_id: str | None = None
    messages: list[Message] = field(default_factory=list)
    context: SessionContext = field(default_factory=SessionContext)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionStore:
    """Process-wide session map with FIFO message trimming and least-recently-updated eviction."""

    def __init__(self, *, max_messages: int = DEFAULT_MAX_MESSAGES, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        if max_messages < 0:
            raise ValueError(f"max_messages must be >= 0, got {max_messages}")
        if max_sessions < 1:
            raise ValueError(f"max_sessions must be >= 1, got {max_sessions}")
        self._max_messages = max_messages
        self._max_sessions = max_sessions
        self._sessions: OrderedDict[str, Session] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}

    @staticmethod
    def new_session_id() -> str:
        return f"session_{uuid4().hex}"

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str | None = None, *, user_id: str | None = None) -> Session:
        session_id = session_id or self.new_session_id()
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(id=session_id, user_id=user_id)
            self._sessions[session_id] = session
            self._evict()
        return session

    def commit(
        self,
        session_id: str,
        *,
        context: SessionContext,
        messages: Sequence[Message] = (),
        user_id: str | None = None,
    ) -> Session:
        """Store ``context`` and append ``messages`` in one step, then trim and touch the session."""
        session = self.get_or_create(session_id, user_id=user_id)
        if user_id and session.user_id is None:
            session.user_id = user_id
        session.context = context
        session.messages.extend(messages)
        if len(session.messages) > self._max_messages:
            del session.messages[: len(session.messages) - self._max_messages]
        session.updated_at = datetime.now(timezone.utc)
        self._sessions.move_to_end(session_id)
        return session

    def history(self, session_id: str) -> list[Message]:
        session = self._sessions.get(session_id)
        return list(session.messages) if session else []

    def clear(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        self._discard_idle_lock(session_id)
        return removed

    def lock_for(self, session_id: str) -> asyncio.Lock:
        """Return the lock that serializes resolutions for ``session_id``."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        """Hold the lock for ``session_id``, dropping it on exit if no one else holds it and the session is gone."""
        lock = self.lock_for(session_id)
        self._lock_holders[session_id] = self._lock_holders.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_holders[session_id] - 1
            if remaining:
                self._lock_holders[session_id] = remaining
            else:
                del self._lock_holders[session_id]
                if session_id not in self._sessions:
                    self._discard_idle_lock(session_id)

    def has_lock(self, session_id: str) -> bool:
        return session_id in self._locks

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def _discard_idle_lock(self, session_id: str) -> None:
        if session_id not in self._lock_holders:
            self._locks.pop(session_id, None)

    def _evict(self) -> None:
        while len(self._sessions) > self._max_sessions:
            oldest_id, _ = self._sessions.popitem(last=False)
            self._discard_idle_lock(oldest_id)
