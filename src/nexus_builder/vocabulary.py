"""Location, behavior and biome tables shared by validation, heuristics and execution."""

from __future__ import annotations

from enum import Enum


class Biome(str, Enum):
    """Terrain-generation algorithms available to the world generator."""

    MATRIX = "matrix"
    CORRUPTED = "corrupted"
    PRISTINE = "pristine"
    CHAOTIC = "chaotic"


# Anchor of each named location as a fraction of world width/height. North is y=0.
LOCATIONS: dict[str, tuple[float, float]] = {
    "center": (0.5, 0.5),
    "north": (0.5, 0.2),
    "south": (0.5, 0.8),
    "east": (0.8, 0.5),
    "west": (0.2, 0.5),
    "northeast": (0.8, 0.2),
    "northwest": (0.2, 0.2),
    "southeast": (0.8, 0.8),
    "southwest": (0.2, 0.8),
}

BEHAVIORS: tuple[str, ...] = ("patrol", "scout", "guard", "gather", "guardarea")

BIOMES: tuple[str, ...] = tuple(biome.value for biome in Biome)

DEFAULT_LOCATION = "center"
DEFAULT_BEHAVIOR = "patrol"


def match_location(token: str | None) -> str | None:
    if not token:
        return None
    lowered = token.lower()
    return lowered if lowered in LOCATIONS else None


def match_behavior(token: str | None) -> str | None:
    if not token:
        return None
    lowered = token.lower()
    return lowered if lowered in BEHAVIORS else None


def match_biome(token: str | None) -> Biome | None:
    if not token:
        return None
    try:
        return Biome(token.lower())
    except ValueError:
        return None


def location_anchor(name: str, width: int, height: int) -> tuple[int, int]:
    """Return the grid cell a named location refers to in a ``width`` x ``height`` world."""
    fx, fy = LOCATIONS[name.lower()]
    x = min(width - 1, max(0, int(width * fx)))
    y = min(height - 1, max(0, int(height * fy)))
    return x, y
