"""Procedural world and event generation."""

from .events import WorldEvent, WorldEventGenerator, WorldEventType
from .generator import Density, GenerationConfig, WorldGenerator, generate_world

__all__ = [
    "Density",
    "GenerationConfig",
    "WorldEvent",
    "WorldEventGenerator",
    "WorldEventType",
    "WorldGenerator",
    "generate_world",
]
