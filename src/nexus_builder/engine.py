"""Command execution against a world/agent state snapshot."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, replace
from typing import Callable
from uuid import uuid4

from nexus_builder.commands.catalog import CommandCatalog
from nexus_builder.commands.results import ParsedIntent
from nexus_builder.models import Agent, AgentStatus, GameState, PlayerStats, Point, Size, WorldObject, WorldTemplate
from nexus_builder.vocabulary import DEFAULT_BEHAVIOR, DEFAULT_LOCATION, Biome, location_anchor
from nexus_builder.world.events import CorruptZoneEffects, EmpBurstEffects, WorldEvent
from nexus_builder.world.generator import GenerationConfig, generate_world

PLACEMENT_JITTER = 2
MAX_PLACEMENT_RETRIES = 10
DEFAULT_SCAN_RADIUS = 5
DEPLOY_POINTS_PER_AGENT = 10
SCAN_POINTS = 5
GENERATE_POINTS = 25

TUTORIAL_TEXT = """NEXUS WORLD BUILDER TUTORIAL:

1. Deploy your first agent:
   > DeployAgent[1] center patrol

2. Scan the area around your agent:
   > ScanArea 25 25 10

3. Check agent status:
   > ListAgents

4. Seed a fresh world:
   > GenerateWorld alpha corrupted 3

Type any command to continue exploring!"""


@dataclass(slots=True)
class StateChanges:
    """Fields of ``GameState`` replaced by a command; ``None`` means unchanged."""

    agents: list[Agent] | None = None
    objects: list[WorldObject] | None = None
    world_size: Size | None = None
    agents_deployed: int = 0
    clear_terminal: bool = False


@dataclass(slots=True)
class ExecutionResult:
    success: bool
    output: str
    points: int = 0
    state_changes: StateChanges | None = None


Handler = Callable[[ParsedIntent, GameState], ExecutionResult]


class CommandEngine:
    """Executes parsed intents; a total function that reports failures as results."""

    def __init__(
        self,
        catalog: CommandCatalog | None = None,
        *,
        rng: random.Random | None = None,
        world_factory: Callable[[GenerationConfig], WorldTemplate] = generate_world,
        logger: logging.Logger | None = None,
    ) -> None:
        self._catalog = catalog if catalog is not None else CommandCatalog.default()
        self._rng = rng or random.Random()
        self._world_factory = world_factory
        self._logger = logger or logging.getLogger("nexus_builder.engine")
        self._handlers: dict[str, Handler] = {
            "help": self._help,
            "tutorial": self._tutorial,
            "status": self._status,
            "listagents": self._list_agents,
            "clearterminal": self._clear_terminal,
            "deployagent": self._deploy_agent,
            "scanarea": self._scan_area,
            "generateworld": self._generate_world,
        }

    def execute(self, intent: ParsedIntent, state: GameState) -> ExecutionResult:
        handler = self._handlers.get(intent.command_name.lower())
        if handler is None:
            return ExecutionResult(
                success=False,
                output=f'Unknown command: {intent.command_name}. Type "help" for available commands.',
            )

        try:
            result = handler(intent, state)
        except Exception as exc:  # noqa: BLE001 - execution must always yield a result.
            self._logger.exception("command_execution_failed", extra={"command_name": intent.command_name})
            return ExecutionResult(success=False, output=f"{intent.command_name} failed: {type(exc).__name__}: {exc}")

        self._logger.info(
            "command_executed",
            extra={"command_name": intent.command_name, "success": result.success, "points": result.points},
        )
        return result

    @staticmethod
    def apply(state: GameState, result: ExecutionResult) -> GameState:
        """Return a new state with the result's changes and score merged in."""
        if not result.success:
            return state

        changes = result.state_changes or StateChanges()
        stats = state.player_stats
        player_stats = PlayerStats(
            score=stats.score + result.points,
            commands_executed=stats.commands_executed + 1,
            agents_deployed=stats.agents_deployed + changes.agents_deployed,
            achievements=list(stats.achievements),
            level=stats.level,
        )
        return replace(
            state,
            agents=list(changes.agents) if changes.agents is not None else list(state.agents),
            objects=list(changes.objects) if changes.objects is not None else list(state.objects),
            world_size=changes.world_size or state.world_size,
            player_stats=player_stats,
        )

    @staticmethod
    def apply_event(state: GameState, event: WorldEvent) -> GameState:
        """Apply an event's agent effects to every agent inside its radius."""
        effects = event.effects
        agents: list[Agent] = []
        for agent in state.agents:
            if not event.covers(agent.position.x, agent.position.y):
                agents.append(agent)
                continue
            if isinstance(effects, EmpBurstEffects):
                agent = replace(
                    agent,
                    energy=max(0, agent.energy - effects.energy_drain),
                    status=AgentStatus.ERROR if effects.disable_agents else agent.status,
                    last_action=event.type.value,
                )
            elif isinstance(effects, CorruptZoneEffects):
                agent = replace(agent, health=max(0, agent.health - effects.health_drain), last_action=event.type.value)
            agents.append(agent)
        return replace(state, agents=agents)

    def _help(self, intent: ParsedIntent, state: GameState) -> ExecutionResult:
        lines = [f"  {spec.syntax} - {spec.description}" for spec in self._catalog]
        return ExecutionResult(success=True, output="Available Commands:\n" + "\n".join(lines))

    def _tutorial(self, intent: ParsedIntent, state: GameState) -> ExecutionResult:
        return ExecutionResult(success=True, output=TUTORIAL_TEXT)

    def _status(self, intent: ParsedIntent, state: GameState) -> ExecutionResult:
        stats = state.player_stats
        output = "\n".join(
            (
                "SYSTEM STATUS:",
                f"  Active Agents: {len(state.agents)}",
                f"  Commands Executed: {stats.commands_executed}",
                f"  Current Score: {stats.score}",
                f"  Player Level: {stats.level}",
                f"  World Size: {state.world_size.width}x{state.world_size.height}",
            )
        )
        return ExecutionResult(success=True, output=output)

    def _list_agents(self, intent: ParsedIntent, state: GameState) -> ExecutionResult:
        if not state.agents:
            return ExecutionResult(success=True, output="No agents currently deployed.")
        lines = [
            f"  {agent.id}: {agent.name} [{agent.status.value}] at ({agent.position.x}, {agent.position.y})"
            for agent in state.agents
        ]
        return ExecutionResult(success=True, output="Active Agents:\n" + "\n".join(lines))

    def _clear_terminal(self, intent: ParsedIntent, state: GameState) -> ExecutionResult:
        return ExecutionResult(success=True, output="Terminal cleared.", state_changes=StateChanges(clear_terminal=True))

    def _deploy_agent(self, intent: ParsedIntent, state: GameState) -> ExecutionResult:
        arguments = intent.arguments
        count = int(arguments["count"])
        if count <= 0:
            return ExecutionResult(success=False, output="Agent count must be greater than 0")

        behavior = arguments.get("behavior") or DEFAULT_BEHAVIOR
        size = state.world_size
        if "x" in arguments and "y" in arguments:
            base = (int(arguments["x"]), int(arguments["y"]))
            location = f"({base[0]}, {base[1]})"
        else:
            location = arguments.get("location") or DEFAULT_LOCATION
            base = location_anchor(location, size.width, size.height)

        blocked = state.blocking_cells()
        deployed: list[Agent] = []
        for index in range(count):
            number = state.player_stats.agents_deployed + index + 1
            deployed.append(
                Agent(
                    id=f"agent_{uuid4().hex[:12]}",
                    name=f"Agent-{number}",
                    position=self._place_agent(base, size, blocked),
                    behavior=behavior,
                )
            )

        return ExecutionResult(
            success=True,
            output=f"Successfully deployed {count} agent(s) with {behavior} behavior at {location}.",
            points=count * DEPLOY_POINTS_PER_AGENT,
            state_changes=StateChanges(agents=[*state.agents, *deployed], agents_deployed=count),
        )

    def _place_agent(self, base: tuple[int, int], size: Size, blocked: set[tuple[int, int]]) -> Point:
        """Jitter around ``base``, widening the spread while the cell holds a blocking object.

        When the retry budget runs out the nearest free cell to the last candidate is used.
        """
        base_x, base_y = base
        candidate = self._jittered(base_x, base_y, PLACEMENT_JITTER, size)
        for attempt in range(1, MAX_PLACEMENT_RETRIES + 1):
            if candidate not in blocked:
                return Point(*candidate)
            candidate = self._jittered(base_x, base_y, PLACEMENT_JITTER + attempt, size)
        if candidate in blocked:
            candidate = self._nearest_free(candidate, size, blocked)
        return Point(*candidate)

    @staticmethod
    def _nearest_free(origin: tuple[int, int], size: Size, blocked: set[tuple[int, int]]) -> tuple[int, int]:
        ox, oy = origin
        for ring in range(1, max(size.width, size.height)):
            for dx in range(-ring, ring + 1):
                for dy in range(-ring, ring + 1):
                    if max(abs(dx), abs(dy)) != ring:
                        continue
                    x, y = ox + dx, oy + dy
                    if 0 <= x < size.width and 0 <= y < size.height and (x, y) not in blocked:
                        return x, y
        # Fully blocked world.
        return origin

    def _jittered(self, base_x: int, base_y: int, spread: int, size: Size) -> tuple[int, int]:
        x = base_x + self._rng.randint(-spread, spread)
        y = base_y + self._rng.randint(-spread, spread)
        return min(size.width - 1, max(0, x)), min(size.height - 1, max(0, y))

    def _scan_area(self, intent: ParsedIntent, state: GameState) -> ExecutionResult:
        x = int(intent.arguments["x"])
        y = int(intent.arguments["y"])
        radius = intent.arguments.get("radius") or DEFAULT_SCAN_RADIUS

        nearby_agents = [agent for agent in state.agents if math.dist((agent.position.x, agent.position.y), (x, y)) <= radius]
        nearby_objects = [obj for obj in state.objects if math.dist((obj.position.x, obj.position.y), (x, y)) <= radius]

        lines = [f"Scan complete. Area: ({x}, {y}) Radius: {radius}", f"Agents found: {len(nearby_agents)}"]
        lines.extend(f"  {agent.id}: {agent.name} at ({agent.position.x}, {agent.position.y})" for agent in nearby_agents)
        lines.append(f"Objects found: {len(nearby_objects)}")
        lines.extend(f"  {obj.id} [{obj.type.value}] at ({obj.position.x}, {obj.position.y})" for obj in nearby_objects)
        return ExecutionResult(success=True, output="\n".join(lines), points=SCAN_POINTS)

    def _generate_world(self, intent: ParsedIntent, state: GameState) -> ExecutionResult:
        arguments = intent.arguments
        config = GenerationConfig(
            seed=str(arguments["seed"]),
            width=state.world_size.width,
            height=state.world_size.height,
            biome=Biome(arguments.get("biome") or Biome.MATRIX.value),
            difficulty=int(arguments.get("difficulty") or 1),
        )
        template = self._world_factory(config)
        return ExecutionResult(
            success=True,
            output=(
                f"Generated {template.name}: {len(template.objects)} objects, "
                f"{len(template.spawn_points)} spawn points."
            ),
            points=GENERATE_POINTS,
            state_changes=StateChanges(objects=list(template.objects), world_size=template.size),
        )
