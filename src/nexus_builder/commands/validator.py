"""Structured command validation against the command catalog and world state."""

from __future__ import annotations

import logging
from typing import Any, Callable

from nexus_builder.commands.catalog import CommandCatalog, CommandSpec
from nexus_builder.commands.grammar import GrammarError, grammar_for, split_head
from nexus_builder.commands.results import ParsedIntent, ValidationResult
from nexus_builder.models import GameState, Size
from nexus_builder.vocabulary import BEHAVIORS, BIOMES, LOCATIONS, match_behavior, match_biome, match_location

DEFAULT_AGENT_CAP = 50
LARGE_DEPLOYMENT = 10
LARGE_SCAN_RADIUS = 20
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10

SemanticCheck = Callable[[dict[str, Any], GameState, list[str], list[str]], None]


class CommandValidator:
    """Validates command strings and produces ``ParsedIntent`` values for valid ones.

    Validation never raises for bad input; every problem is reported through
    ``ValidationResult.errors`` (blocking) or ``ValidationResult.warnings``.
    """

    def __init__(
        self,
        catalog: CommandCatalog | None = None,
        *,
        agent_cap: int = DEFAULT_AGENT_CAP,
        logger: logging.Logger | None = None,
    ) -> None:
        self._catalog = catalog if catalog is not None else CommandCatalog.default()
        self._agent_cap = agent_cap
        self._logger = logger or logging.getLogger("nexus_builder.commands.validator")
        self._checks: dict[str, SemanticCheck] = {
            "deployagent": self._check_deploy_agent,
            "scanarea": self._check_scan_area,
            "generateworld": self._check_generate_world,
        }

    @property
    def catalog(self) -> CommandCatalog:
        return self._catalog

    def validate(self, command: str, state: GameState | None = None) -> ValidationResult:
        result, _ = self.parse(command, state)
        return result

    def parse(self, command: str, state: GameState | None = None) -> tuple[ValidationResult, ParsedIntent | None]:
        """Return the validation result and, when valid, the parsed intent."""
        state = state or GameState()
        errors: list[str] = []
        warnings: list[str] = []

        head, rest = split_head(command)
        if not head and not rest:
            errors.append("Command cannot be empty")
            return ValidationResult(tuple(errors), tuple(warnings)), None

        spec = self._catalog.match(head)
        if spec is None:
            errors.append(f"Unknown command: {head or rest}")
            return ValidationResult(tuple(errors), tuple(warnings)), None

        try:
            raw_arguments = grammar_for(spec)(rest, spec)
        except GrammarError as exc:
            errors.append(str(exc))
            return ValidationResult(tuple(errors), tuple(warnings)), None

        check = self._checks.get(spec.key) if not spec.is_custom else None
        if check is not None:
            check(raw_arguments, state, errors, warnings)

        result = ValidationResult(tuple(errors), tuple(warnings))
        if not result.is_valid:
            self._logger.debug("command_rejected", extra={"command": command, "errors": result.errors})
            return result, None

        intent = ParsedIntent(command_name=spec.name, arguments=self._with_defaults(spec, raw_arguments))
        return result, intent

    @staticmethod
    def _with_defaults(spec: CommandSpec, arguments: dict[str, Any]) -> dict[str, Any]:
        merged = dict(arguments)
        for param in spec.parameters:
            if merged.get(param.name) is None and param.default is not None:
                merged[param.name] = param.default
        for key in ("location", "behavior", "biome"):
            if isinstance(merged.get(key), str):
                merged[key] = merged[key].lower()
        return merged

    def _check_deploy_agent(self, arguments: dict[str, Any], state: GameState, errors: list[str], warnings: list[str]) -> None:
        count = arguments["count"]
        if count <= 0:
            errors.append("Agent count must be greater than 0")
        if count > LARGE_DEPLOYMENT:
            warnings.append(f"Deploying more than {LARGE_DEPLOYMENT} agents may impact performance")
        if len(state.agents) + count > self._agent_cap:
            warnings.append(f"Approaching maximum agent limit ({self._agent_cap})")

        if "x" in arguments:
            _check_bounds(arguments["x"], arguments["y"], state.world_size, errors)
        else:
            location = arguments.get("location")
            if location and match_location(location) is None:
                errors.append(
                    f"Invalid location: {location}. Valid locations: {', '.join(LOCATIONS)} or coordinates (x y)"
                )

        behavior = arguments.get("behavior")
        if behavior and match_behavior(behavior) is None:
            errors.append(f"Invalid behavior: {behavior}. Valid behaviors: {', '.join(BEHAVIORS)}")

    def _check_scan_area(self, arguments: dict[str, Any], state: GameState, errors: list[str], warnings: list[str]) -> None:
        _check_bounds(arguments["x"], arguments["y"], state.world_size, errors)
        radius = arguments.get("radius")
        if radius is None:
            return
        if radius <= 0:
            errors.append("Scan radius must be greater than 0")
        elif radius > LARGE_SCAN_RADIUS:
            warnings.append("Large scan radius may be slow")

    def _check_generate_world(self, arguments: dict[str, Any], state: GameState, errors: list[str], warnings: list[str]) -> None:
        biome = arguments.get("biome")
        if biome and match_biome(biome) is None:
            errors.append(f"Invalid biome: {biome}. Valid biomes: {', '.join(BIOMES)}")

        difficulty = arguments.get("difficulty")
        if difficulty is not None and not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
            errors.append(f"Difficulty {difficulty} is out of range ({MIN_DIFFICULTY}-{MAX_DIFFICULTY})")


def _check_bounds(x: int, y: int, size: Size, errors: list[str]) -> None:
    if not 0 <= x < size.width:
        errors.append(f"X coordinate {x} is out of bounds (0-{size.width - 1})")
    if not 0 <= y < size.height:
        errors.append(f"Y coordinate {y} is out of bounds (0-{size.height - 1})")
