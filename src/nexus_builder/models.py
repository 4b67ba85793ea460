from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True, slots=True)
class Size:
    width: int
    height: int

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height


class ObjectType(str, Enum):
    WALL = "wall"
    OBSTACLE = "obstacle"
    DATANODE = "datanode"
    TERMINALNODE = "terminalnode"
    PORTAL = "portal"


@dataclass(frozen=True, slots=True)
class WallProperties:
    pass


@dataclass(frozen=True, slots=True)
class ObstacleProperties:
    destructible: bool = False
    health: int = 1


@dataclass(frozen=True, slots=True)
class DataNodeProperties:
    value: int
    encrypted: bool = False


@dataclass(frozen=True, slots=True)
class TerminalProperties:
    active: bool
    access_level: int


@dataclass(frozen=True, slots=True)
class PortalProperties:
    destination: str
    stable: bool = True


ObjectProperties = Union[
    WallProperties,
    ObstacleProperties,
    DataNodeProperties,
    TerminalProperties,
    PortalProperties,
]


@dataclass(frozen=True, slots=True)
class WorldObject:
    id: str
    type: ObjectType
    position: Point
    properties: ObjectProperties = field(default_factory=WallProperties)
    is_blocking: bool = False
    is_collectable: bool = False
    is_activatable: bool = False


@dataclass(frozen=True, slots=True)
class WorldTemplate:
    """Immutable generation output; the boundary toward persistence and presentation."""

    id: str
    name: str
    description: str
    size: Size
    objects: tuple[WorldObject, ...]
    spawn_points: tuple[Point, ...]
    difficulty: int
    biome: str
    seed: str
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["created_at"] = self.created_at.isoformat()
        payload["objects"] = [
            {**item, "type": obj.type.value} for item, obj in zip(payload["objects"], self.objects)
        ]
        return payload


class AgentStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    EXECUTING = "executing"
    ERROR = "error"
    MOVING = "moving"
    GATHERING = "gathering"


@dataclass(slots=True)
class Agent:
    id: str
    name: str
    position: Point
    behavior: str
    status: AgentStatus = AgentStatus.ACTIVE
    health: int = 100
    energy: int = 100
    last_action: str = "deployed"
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(slots=True)
class PlayerStats:
    score: int = 0
    commands_executed: int = 0
    agents_deployed: int = 0
    achievements: list[str] = field(default_factory=list)
    level: int = 1


@dataclass(slots=True)
class Objective:
    id: str
    description: str
    completed: bool = False
    progress: int = 0
    max_progress: int = 1


@dataclass(slots=True)
class Challenge:
    id: str
    title: str
    description: str = ""
    objectives: list[Objective] = field(default_factory=list)
    difficulty: str = "easy"


@dataclass(slots=True)
class GameState:
    """Snapshot of the simulated world that commands read and the engine replaces."""

    agents: list[Agent] = field(default_factory=list)
    world_size: Size = field(default_factory=lambda: Size(50, 50))
    objects: list[WorldObject] = field(default_factory=list)
    player_stats: PlayerStats = field(default_factory=PlayerStats)
    current_challenge: Challenge | None = None

    def blocking_cells(self) -> set[tuple[int, int]]:
        return {(obj.position.x, obj.position.y) for obj in self.objects if obj.is_blocking}
