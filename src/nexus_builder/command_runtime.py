"""Asynchronous runtime that validates and executes terminal commands in submission order."""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from nexus_builder.commands.validator import CommandValidator
from nexus_builder.engine import CommandEngine
from nexus_builder.models import GameState
from nexus_builder.world.events import WorldEvent


class CommandJobStatus(str, Enum):
    """Lifecycle states for submitted command jobs."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(slots=True)
class CommandJob:
    """Represents command validation/execution state and final output."""

    id: str
    command: str
    submitted_at: datetime
    status: CommandJobStatus
    output: str | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    points: int = 0


class CommandHistoryStore(Protocol):
    """Persistence contract for storing command history."""

    def append(self, job: CommandJob) -> None:
        """Persist a finished job record."""

    def list_recent(self, limit: int) -> list[CommandJob]:
        """Return up to ``limit`` newest jobs."""


class InMemoryHistoryStore:
    """Bounded in-memory history store."""

    def __init__(self, max_jobs: int = 1_000) -> None:
        self._jobs: deque[CommandJob] = deque(maxlen=max_jobs)

    def append(self, job: CommandJob) -> None:
        self._jobs.appendleft(job)

    def list_recent(self, limit: int) -> list[CommandJob]:
        return list(self._jobs)[:limit]


class JsonlHistoryStore:
    """JSONL-backed command history persistence."""

    def __init__(self, file_path: str | Path) -> None:
        self._path = Path(file_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, job: CommandJob) -> None:
        payload = asdict(job)
        payload["status"] = job.status.value
        payload["submitted_at"] = job.submitted_at.isoformat()
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")

    def list_recent(self, limit: int) -> list[CommandJob]:
        if not self._path.exists():
            return []

        jobs: list[CommandJob] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                payload = json.loads(line)
                jobs.append(
                    CommandJob(
                        id=payload["id"],
                        command=payload["command"],
                        submitted_at=datetime.fromisoformat(payload["submitted_at"]),
                        status=CommandJobStatus(payload["status"]),
                        output=payload.get("output"),
                        errors=list(payload.get("errors") or []),
                        warnings=list(payload.get("warnings") or []),
                        points=int(payload.get("points") or 0),
                    )
                )

        jobs.reverse()
        return jobs[:limit]


class CommandRuntime:
    """Queue-backed async runtime owning the game state that commands mutate."""

    def __init__(
        self,
        engine: CommandEngine | None = None,
        validator: CommandValidator | None = None,
        *,
        state: GameState | None = None,
        history_store: CommandHistoryStore | None = None,
        max_queue_size: int = 1_000,
        transcript_size: int = 500,
        logger: logging.Logger | None = None,
    ) -> None:
        self._validator = validator if validator is not None else CommandValidator()
        self._engine = engine if engine is not None else CommandEngine(self._validator.catalog)
        self._state = state if state is not None else GameState()
        self._history_store = (
            history_store if history_store is not None else InMemoryHistoryStore(max_jobs=max_queue_size)
        )
        self._logger = logger or logging.getLogger("nexus_builder.command_runtime")

        self._jobs: dict[str, CommandJob] = {}
        self._waiters: dict[str, asyncio.Future[CommandJob]] = {}
        self._transcript: deque[str] = deque(maxlen=transcript_size)
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_queue_size)
        self._worker_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def validator(self) -> CommandValidator:
        return self._validator

    @property
    def transcript(self) -> list[str]:
        return list(self._transcript)

    async def start(self) -> None:
        """Start the worker loop once for this runtime."""
        if self._worker_task and not self._worker_task.done():
            return

        self._worker_task = asyncio.create_task(self._worker_loop(), name="command-runtime-worker")
        self._logger.info("command_runtime_started", extra={"queue_maxsize": self._queue.maxsize})

    async def stop(self) -> None:
        """Stop worker loop and wait for graceful cancellation."""
        if not self._worker_task:
            return

        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        finally:
            self._worker_task = None

        self._logger.info("command_runtime_stopped")

    async def join(self) -> None:
        await self._queue.join()

    def submit_command(self, command: str) -> str:
        """Submit a command and return the associated job id."""
        job_id = uuid4().hex
        job = CommandJob(
            id=job_id,
            command=command,
            submitted_at=datetime.now(timezone.utc),
            status=CommandJobStatus.QUEUED,
        )
        self._jobs[job_id] = job
        self._queue.put_nowait(job_id)
        self._logger.info(
            "command_submitted",
            extra={"job_id": job_id, "command": command, "queue_size": self._queue.qsize()},
        )
        return job_id

    async def execute(self, command: str) -> CommandJob:
        """Submit ``command`` and wait until the worker has finished it."""
        await self.start()
        job_id = self.submit_command(command)
        waiter: asyncio.Future[CommandJob] = asyncio.get_running_loop().create_future()
        self._waiters[job_id] = waiter
        return await waiter

    def get_job(self, job_id: str) -> CommandJob:
        """Return job state for the given id."""
        if job_id not in self._jobs:
            raise KeyError(f"Unknown command job id: {job_id}")
        return self._jobs[job_id]

    def list_recent_jobs(self, limit: int = 20) -> list[CommandJob]:
        """Return most recent in-memory jobs and persisted history entries."""
        in_memory = sorted(self._jobs.values(), key=lambda job: job.submitted_at, reverse=True)
        if len(in_memory) >= limit:
            return in_memory[:limit]

        persisted = self._history_store.list_recent(limit)
        merged: list[CommandJob] = []
        seen: set[str] = set()
        for job in [*in_memory, *persisted]:
            if job.id in seen:
                continue
            seen.add(job.id)
            merged.append(job)
            if len(merged) >= limit:
                break
        return merged

    def recent_commands(self, limit: int = 5) -> list[str]:
        """Commands this runtime executed successfully, oldest first."""
        succeeded = [job.command for job in self._jobs.values() if job.status is CommandJobStatus.SUCCEEDED]
        return succeeded[-limit:] if limit > 0 else []

    def apply_event(self, event: WorldEvent) -> GameState:
        self._state = self._engine.apply_event(self._state, event)
        self._transcript.append(f"[{event.type.value}] {event.message}")
        self._logger.info("world_event_applied", extra={"event_id": event.id, "event_type": event.type.value})
        return self._state

    async def _worker_loop(self) -> None:
        while True:
            job_id = await self._queue.get()
            try:
                self._execute_job(job_id)
            finally:
                self._queue.task_done()
                waiter = self._waiters.pop(job_id, None)
                if waiter is not None and not waiter.done():
                    waiter.set_result(self._jobs[job_id])

    def _execute_job(self, job_id: str) -> None:
        job = self._jobs[job_id]
        job.status = CommandJobStatus.RUNNING
        self._logger.info("command_started", extra={"job_id": job.id, "command": job.command})
        self._transcript.append(f"> {job.command}")

        try:
            validation, intent = self._validator.parse(job.command, self._state)
            job.warnings = list(validation.warnings)
            if intent is None:
                job.errors = list(validation.errors)
                job.status = CommandJobStatus.REJECTED
                self._transcript.extend(f"Error: {error}" for error in job.errors)
                self._logger.info("command_rejected", extra={"job_id": job.id, "errors": job.errors})
            else:
                result = self._engine.execute(intent, self._state)
                self._state = self._engine.apply(self._state, result)
                job.output = result.output
                job.points = result.points
                job.status = CommandJobStatus.SUCCEEDED if result.success else CommandJobStatus.FAILED
                if not result.success:
                    job.errors = [result.output]
                if result.state_changes is not None and result.state_changes.clear_terminal:
                    self._transcript.clear()
                else:
                    self._transcript.extend(f"Warning: {warning}" for warning in job.warnings)
                    self._transcript.append(result.output)
                self._logger.info(
                    "command_finished",
                    extra={"job_id": job.id, "status": job.status.value, "points": job.points},
                )
        except Exception as exc:  # noqa: BLE001 - runtime should capture execution failures.
            job.status = CommandJobStatus.FAILED
            job.errors = [f"{type(exc).__name__}: {exc}"]
            self._logger.exception("command_failed", extra={"job_id": job.id, "command": job.command})

        self._history_store.append(job)
