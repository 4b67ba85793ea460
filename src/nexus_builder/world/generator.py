"""Seeded procedural world generation.

A ``WorldTemplate`` is a pure function of its ``GenerationConfig``: every call
builds a fresh ``SeededRandom`` from ``config.seed`` and walks the same passes
in the same order, so persisting the config alone is enough to regenerate the
exact same terrain, objects and spawn points.

Requested densities are ceilings. When ``find_empty_position`` exhausts its
attempt budget the placement is skipped without error.
"""

from __future__ import annotations

import logging
import math

from pydantic import BaseModel, ConfigDict, Field

from nexus_builder.models import (
    DataNodeProperties,
    ObjectProperties,
    ObjectType,
    ObstacleProperties,
    Point,
    PortalProperties,
    Size,
    TerminalProperties,
    WallProperties,
    WorldObject,
    WorldTemplate,
)
from nexus_builder.seeded_random import SeededRandom, hash_seed
from nexus_builder.vocabulary import Biome

MAX_PLACEMENT_ATTEMPTS = 100
SPAWN_POINT_RATIO = 0.02
MIN_SPAWN_POINTS = 4

logger = logging.getLogger("nexus_builder.world.generator")


class Density(BaseModel):
    """Fraction of world cells targeted for each interactive object type."""

    model_config = ConfigDict(frozen=True)

    obstacles: float = Field(default=0.05, ge=0.0, le=1.0)
    datanodes: float = Field(default=0.02, ge=0.0, le=1.0)
    terminals: float = Field(default=0.01, ge=0.0, le=1.0)
    portals: float = Field(default=0.004, ge=0.0, le=1.0)


class GenerationConfig(BaseModel):
    """Everything needed to reproduce a generated world."""

    model_config = ConfigDict(frozen=True)

    seed: str
    width: int = Field(default=50, ge=1)
    height: int = Field(default=50, ge=1)
    density: Density = Field(default_factory=Density)
    biome: Biome = Biome.MATRIX
    difficulty: int = Field(default=1, ge=1, le=10)


class WorldGenerator:
    """Builds a ``WorldTemplate`` from terrain, object and spawn-point passes."""

    def __init__(self, config: GenerationConfig) -> None:
        self._config = config
        self._rng = SeededRandom(config.seed)
        self._objects: list[WorldObject] = []
        self._occupied: set[tuple[int, int]] = set()

    @property
    def config(self) -> GenerationConfig:
        return self._config

    def generate(self) -> WorldTemplate:
        config = self._config
        self._rng = SeededRandom(config.seed)
        self._objects = []
        self._occupied = set()

        self._generate_terrain()
        terrain_count = len(self._objects)

        self._place_data_nodes()
        self._place_terminals()
        self._place_obstacles()
        self._place_portals()
        spawn_points = self._generate_spawn_points()

        logger.debug(
            "world_generated",
            extra={
                "seed": config.seed,
                "biome": config.biome.value,
                "terrain_objects": terrain_count,
                "total_objects": len(self._objects),
                "spawn_points": len(spawn_points),
            },
        )
        return WorldTemplate(
            id=f"generated_{config.biome.value}_{hash_seed(config.seed)}_{config.width}x{config.height}",
            name=f"{config.biome.value}_world_{config.seed}",
            description=f"Procedurally generated {config.biome.value} world",
            size=Size(config.width, config.height),
            objects=tuple(self._objects),
            spawn_points=tuple(spawn_points),
            difficulty=config.difficulty,
            biome=config.biome.value,
            seed=config.seed,
        )

    def _generate_terrain(self) -> None:
        biome = self._config.biome
        if biome == Biome.MATRIX:
            self._generate_matrix_terrain()
        elif biome == Biome.CORRUPTED:
            self._generate_corrupted_terrain()
        elif biome == Biome.PRISTINE:
            self._generate_pristine_terrain()
        elif biome == Biome.CHAOTIC:
            self._generate_chaotic_terrain()

    def _generate_matrix_terrain(self) -> None:
        for x in range(0, self._config.width, 10):
            for y in range(0, self._config.height, 10):
                if self._rng.next() < 0.3:
                    self._create_cluster(x, y, ObjectType.WALL, min_size=2, max_size=3)

    def _generate_corrupted_terrain(self) -> None:
        width, height = self._config.width, self._config.height
        zone_count = self._rng.next_int(3, 6)
        for _ in range(zone_count):
            center_x = self._rng.next_int(5, width - 5)
            center_y = self._rng.next_int(5, height - 5)
            radius = self._rng.next_int(3, 8)
            self._create_corruption_zone(center_x, center_y, radius)

    def _generate_pristine_terrain(self) -> None:
        width, height = self._config.width, self._config.height
        for x in range(width):
            if self._rng.next() < 0.1:
                self._place_terrain(ObjectType.WALL, x, 0)
                self._place_terrain(ObjectType.WALL, x, height - 1)

        for y in range(height):
            if self._rng.next() < 0.1:
                self._place_terrain(ObjectType.WALL, 0, y)
                self._place_terrain(ObjectType.WALL, width - 1, y)

    def _generate_chaotic_terrain(self) -> None:
        width, height = self._config.width, self._config.height
        for _ in range(math.ceil(width * height * 0.05)):
            x = self._rng.next_int(0, width - 1)
            y = self._rng.next_int(0, height - 1)
            if self._rng.next() < 0.7:
                self._place_terrain(ObjectType.WALL, x, y)

    def _create_cluster(self, center_x: int, center_y: int, object_type: ObjectType, *, min_size: int, max_size: int) -> None:
        size = self._rng.next_int(min_size, max_size)
        for _ in range(size):
            x = center_x + self._rng.next_int(-2, 2)
            y = center_y + self._rng.next_int(-2, 2)
            if self._in_bounds(x, y):
                self._place_terrain(object_type, x, y)

    def _create_corruption_zone(self, center_x: int, center_y: int, radius: int) -> None:
        for x in range(center_x - radius, center_x + radius + 1):
            for y in range(center_y - radius, center_y + radius + 1):
                distance = math.sqrt((x - center_x) ** 2 + (y - center_y) ** 2)
                if distance <= radius and self._in_bounds(x, y):
                    probability = 1 - (distance / radius)
                    if self._rng.next() < probability * 0.6:
                        self._place_terrain(ObjectType.OBSTACLE, x, y)

    def _place_terrain(self, object_type: ObjectType, x: int, y: int) -> None:
        if (x, y) in self._occupied:
            return
        properties: ObjectProperties = WallProperties() if object_type == ObjectType.WALL else ObstacleProperties()
        self._add(
            WorldObject(
                id=f"{object_type.value}_{x}_{y}",
                type=object_type,
                position=Point(x, y),
                properties=properties,
                is_blocking=object_type in (ObjectType.WALL, ObjectType.OBSTACLE),
            )
        )

    def _target_count(self, fraction: float) -> int:
        return math.floor(self._config.width * self._config.height * fraction)

    def _place_data_nodes(self) -> None:
        for index in range(self._target_count(self._config.density.datanodes)):
            position = self._find_empty_position()
            if position is None:
                continue
            properties = DataNodeProperties(
                value=self._rng.next_int(50, 200),
                encrypted=self._rng.next() < 0.3,
            )
            self._add(
                WorldObject(
                    id=f"datanode_{index}",
                    type=ObjectType.DATANODE,
                    position=position,
                    properties=properties,
                    is_collectable=True,
                )
            )

    def _place_terminals(self) -> None:
        for index in range(self._target_count(self._config.density.terminals)):
            position = self._find_empty_position()
            if position is None:
                continue
            properties = TerminalProperties(
                active=self._rng.next() < 0.7,
                access_level=self._rng.next_int(1, 5),
            )
            self._add(
                WorldObject(
                    id=f"terminal_{index}",
                    type=ObjectType.TERMINALNODE,
                    position=position,
                    properties=properties,
                    is_activatable=True,
                )
            )

    def _place_obstacles(self) -> None:
        for index in range(self._target_count(self._config.density.obstacles)):
            position = self._find_empty_position()
            if position is None:
                continue
            properties = ObstacleProperties(
                destructible=self._rng.next() < 0.4,
                health=self._rng.next_int(1, 3),
            )
            self._add(
                WorldObject(
                    id=f"obstacle_{index}",
                    type=ObjectType.OBSTACLE,
                    position=position,
                    properties=properties,
                    is_blocking=True,
                )
            )

    def _place_portals(self) -> None:
        for index in range(self._target_count(self._config.density.portals)):
            position = self._find_empty_position()
            if position is None:
                continue
            properties = PortalProperties(
                destination=f"world_{self._rng.next_int(1, 10)}",
                stable=self._rng.next() < 0.8,
            )
            self._add(
                WorldObject(
                    id=f"portal_{index}",
                    type=ObjectType.PORTAL,
                    position=position,
                    properties=properties,
                    is_activatable=True,
                )
            )

    def _generate_spawn_points(self) -> list[Point]:
        spawn_count = max(MIN_SPAWN_POINTS, math.floor(self._config.width * self._config.height * SPAWN_POINT_RATIO))
        spawn_points: list[Point] = []
        for _ in range(spawn_count):
            position = self._find_empty_position()
            if position is None:
                continue
            self._occupied.add((position.x, position.y))
            spawn_points.append(position)
        return spawn_points

    def _find_empty_position(self) -> Point | None:
        for _ in range(MAX_PLACEMENT_ATTEMPTS):
            x = self._rng.next_int(0, self._config.width - 1)
            y = self._rng.next_int(0, self._config.height - 1)
            if (x, y) not in self._occupied:
                return Point(x, y)
        return None

    def _add(self, obj: WorldObject) -> None:
        self._occupied.add((obj.position.x, obj.position.y))
        self._objects.append(obj)

    def _in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._config.width and 0 <= y < self._config.height


def generate_world(config: GenerationConfig) -> WorldTemplate:
    return WorldGenerator(config).generate()
