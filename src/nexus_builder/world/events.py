"""Timed, randomized world events."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Union

from nexus_builder.models import Point, Size
from nexus_builder.seeded_random import SeededRandom

logger = logging.getLogger("nexus_builder.world.events")

MIN_EVENT_DELAY_MS = 30_000
MAX_EVENT_DELAY_MS = 300_000


class WorldEventType(str, Enum):
    EMP_BURST = "emp_burst"
    ROGUE_AGENT = "rogue_agent"
    CORRUPT_ZONE = "corrupt_zone"
    DATA_SURGE = "data_surge"
    SYSTEM_GLITCH = "system_glitch"


@dataclass(frozen=True, slots=True)
class EmpBurstEffects:
    disable_agents: bool = True
    energy_drain: int = 50


@dataclass(frozen=True, slots=True)
class RogueAgentEffects:
    spawn_hostile: bool = True
    agent_type: str = "rogue"


@dataclass(frozen=True, slots=True)
class CorruptZoneEffects:
    corrupt_data: bool = True
    health_drain: int = 10


@dataclass(frozen=True, slots=True)
class DataSurgeEffects:
    bonus_data: bool = True
    multiplier: int = 2


@dataclass(frozen=True, slots=True)
class SystemGlitchEffects:
    random_teleport: bool = True
    command_delay_ms: int = 2000


EventEffects = Union[
    EmpBurstEffects,
    RogueAgentEffects,
    CorruptZoneEffects,
    DataSurgeEffects,
    SystemGlitchEffects,
]

_DURATIONS_MS: dict[WorldEventType, int] = {
    WorldEventType.EMP_BURST: 30_000,
    WorldEventType.CORRUPT_ZONE: 120_000,
    WorldEventType.DATA_SURGE: 60_000,
    WorldEventType.ROGUE_AGENT: 180_000,
    WorldEventType.SYSTEM_GLITCH: 45_000,
}

_RADIUS_RANGES: dict[WorldEventType, tuple[int, int]] = {
    WorldEventType.EMP_BURST: (3, 8),
    WorldEventType.CORRUPT_ZONE: (5, 12),
    WorldEventType.DATA_SURGE: (2, 5),
}

_EFFECTS: dict[WorldEventType, Callable[[], EventEffects]] = {
    WorldEventType.EMP_BURST: EmpBurstEffects,
    WorldEventType.ROGUE_AGENT: RogueAgentEffects,
    WorldEventType.CORRUPT_ZONE: CorruptZoneEffects,
    WorldEventType.DATA_SURGE: DataSurgeEffects,
    WorldEventType.SYSTEM_GLITCH: SystemGlitchEffects,
}

_MESSAGES: dict[WorldEventType, str] = {
    WorldEventType.EMP_BURST: "EMP BURST detected at ({x}, {y})! Agent systems compromised.",
    WorldEventType.ROGUE_AGENT: "ROGUE AGENT spotted at ({x}, {y})! Hostile entity detected.",
    WorldEventType.CORRUPT_ZONE: "CORRUPTION ZONE expanding from ({x}, {y})! Data integrity at risk.",
    WorldEventType.DATA_SURGE: "DATA SURGE at ({x}, {y})! Enhanced collection rates active.",
    WorldEventType.SYSTEM_GLITCH: "SYSTEM GLITCH at ({x}, {y})! Reality matrix unstable.",
}


@dataclass(frozen=True, slots=True)
class WorldEvent:
    """A one-shot world event; applied once and expired after ``duration_ms``."""

    id: str
    type: WorldEventType
    position: Point
    radius: int
    duration_ms: int
    effects: EventEffects
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def expires_at(self) -> datetime:
        return self.timestamp + timedelta(milliseconds=self.duration_ms)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def covers(self, x: int, y: int) -> bool:
        return (x - self.position.x) ** 2 + (y - self.position.y) ** 2 <= self.radius**2

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["type"] = self.type.value
        payload["timestamp"] = self.timestamp.isoformat()
        return payload


class WorldEventGenerator:
    """Draws random events from a seeded source; unseeded generators use the clock as seed."""

    def __init__(
        self,
        seed: str | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._rng = SeededRandom(seed if seed is not None else str(time.time_ns() // 1_000_000))
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def generate_event(self, world_size: Size) -> WorldEvent:
        event_type = self._rng.choice(list(WorldEventType))
        position = Point(
            x=self._rng.next_int(0, world_size.width - 1),
            y=self._rng.next_int(0, world_size.height - 1),
        )
        now = self._clock()
        event_id = f"event_{int(now.timestamp() * 1000)}_{self._rng.next_int(1000, 9999)}"
        low, high = _RADIUS_RANGES.get(event_type, (1, 4))

        return WorldEvent(
            id=event_id,
            type=event_type,
            position=position,
            radius=self._rng.next_int(low, high),
            duration_ms=_DURATIONS_MS[event_type],
            effects=_EFFECTS[event_type](),
            message=_MESSAGES[event_type].format(x=position.x, y=position.y),
            timestamp=now,
        )

    def schedule_random_event(
        self,
        world_size: Size,
        callback: Callable[[WorldEvent], Any],
        *,
        delay_range_ms: tuple[int, int] = (MIN_EVENT_DELAY_MS, MAX_EVENT_DELAY_MS),
    ) -> asyncio.TimerHandle:
        """Arm a one-shot timer that delivers a fresh event to ``callback``.

        Must be called from inside a running event loop. Callers that want periodic
        events re-schedule from their callback.
        """
        loop = asyncio.get_running_loop()
        delay_ms = self._rng.next_int(*delay_range_ms)

        def _fire() -> None:
            event = self.generate_event(world_size)
            logger.info("world_event_fired", extra={"event_id": event.id, "event_type": event.type.value})
            callback(event)

        logger.debug("world_event_scheduled", extra={"delay_ms": delay_ms})
        return loop.call_later(delay_ms / 1000, _fire)
