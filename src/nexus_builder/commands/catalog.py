"""Command catalog: registered command specifications and their parameters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator

from nexus_builder.vocabulary import DEFAULT_BEHAVIOR, DEFAULT_LOCATION


class ParameterType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


class CommandCategory(str, Enum):
    AGENT = "agent"
    WORLD = "world"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    name: str
    type: ParameterType = ParameterType.STRING
    required: bool = False
    default: Any = None
    description: str = ""


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """Immutable description of a command the validator and resolver understand."""

    name: str
    syntax: str
    description: str = ""
    parameters: tuple[ParameterSpec, ...] = ()
    category: CommandCategory = CommandCategory.SYSTEM
    is_custom: bool = False

    @property
    def key(self) -> str:
        return self.name.lower()


class CommandCatalog:
    """Registry of ``CommandSpec`` entries matched case-insensitively."""

    def __init__(self, specs: Iterable[CommandSpec] = ()) -> None:
        self._specs: dict[str, CommandSpec] = {}
        for spec in specs:
            self.register(spec)

    @classmethod
    def default(cls) -> CommandCatalog:
        return cls(BUILTIN_COMMANDS)

    def register(self, spec: CommandSpec) -> CommandSpec:
        if spec.key in self._specs:
            raise ValueError(f"Command already registered: {spec.name}")
        self._specs[spec.key] = spec
        return spec

    def get(self, name: str) -> CommandSpec | None:
        return self._specs.get(name.lower())

    def match(self, token: str) -> CommandSpec | None:
        """Match ``token`` by exact name first, then by syntax prefix in registration order."""
        lowered = token.lower()
        if not lowered:
            return None
        exact = self._specs.get(lowered)
        if exact is not None:
            return exact
        for spec in self._specs.values():
            if spec.syntax.lower().startswith(lowered):
                return spec
        return None

    def __iter__(self) -> Iterator[CommandSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._specs


BUILTIN_COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec(
        name="DeployAgent",
        syntax="DeployAgent[count] location behavior",
        description="Deploy intelligent agents to the world grid",
        parameters=(
            ParameterSpec("count", ParameterType.NUMBER, required=True, description="Number of agents to deploy"),
            ParameterSpec("location", ParameterType.STRING, default=DEFAULT_LOCATION, description="Starting location"),
            ParameterSpec("behavior", ParameterType.STRING, default=DEFAULT_BEHAVIOR, description="Agent behavior pattern"),
        ),
        category=CommandCategory.AGENT,
    ),
    CommandSpec(
        name="ScanArea",
        syntax="ScanArea x y radius",
        description="Scan the specified area for objects and agents",
        parameters=(
            ParameterSpec("x", ParameterType.NUMBER, required=True, description="X coordinate"),
            ParameterSpec("y", ParameterType.NUMBER, required=True, description="Y coordinate"),
            ParameterSpec("radius", ParameterType.NUMBER, default=5, description="Scan radius"),
        ),
        category=CommandCategory.WORLD,
    ),
    CommandSpec(
        name="GenerateWorld",
        syntax="GenerateWorld seed biome difficulty",
        description="Replace the world with a procedurally generated one",
        parameters=(
            ParameterSpec("seed", ParameterType.STRING, required=True, description="Generation seed"),
            ParameterSpec("biome", ParameterType.STRING, default="matrix", description="Terrain biome"),
            ParameterSpec("difficulty", ParameterType.NUMBER, default=1, description="Difficulty 1-10"),
        ),
        category=CommandCategory.WORLD,
    ),
    CommandSpec(
        name="ListAgents",
        syntax="ListAgents",
        description="Show all active agents",
        category=CommandCategory.AGENT,
    ),
    CommandSpec(name="Status", syntax="Status", description="Show system status"),
    CommandSpec(name="ClearTerminal", syntax="ClearTerminal", description="Clear terminal output"),
    CommandSpec(name="Help", syntax="Help", description="List available commands"),
    CommandSpec(name="Tutorial", syntax="Tutorial", description="Show the interactive tutorial"),
)
