"""System prompt construction for the command-mapping model."""

from __future__ import annotations

from collections import Counter

from nexus_builder.commands.catalog import CommandCatalog
from nexus_builder.resolver.session import SessionContext
from nexus_builder.vocabulary import BEHAVIORS, BIOMES, LOCATIONS

RECENT_COMMAND_LIMIT = 5
RECENT_EVENT_LIMIT = 2

_PREAMBLE = "You are a command parser for a Matrix-style terminal game. Convert natural language to game commands."

_RESPONSE_FORMAT = (
    'If the command is ambiguous or needs clarification, set "needsClarification": true '
    'and provide a "clarificationPrompt".\n\n'
    'Respond with JSON: {"command": "exact_command", "confidence": 0.0-1.0, '
    '"explanation": "brief_explanation", "needsClarification": false, "clarificationPrompt": null}'
)


def build_system_prompt(catalog: CommandCatalog, context: SessionContext | None = None) -> str:
    sections = [_PREAMBLE, _catalog_section(catalog)]
    context_lines = _context_lines(context) if context else []
    if context_lines:
        sections.append("Current Context:\n" + "\n".join(context_lines))
    sections.append(_RESPONSE_FORMAT)
    return "\n\n".join(sections)


def _catalog_section(catalog: CommandCatalog) -> str:
    lines = ["Available commands:"]
    for spec in catalog:
        lines.append(f"- {spec.syntax}: {spec.description}" if spec.description else f"- {spec.syntax}")
    lines.append("")
    lines.append(f"Locations: {', '.join(LOCATIONS)}, or coordinates like \"25 25\"")
    lines.append(f"Behaviors: {', '.join(BEHAVIORS)}")
    lines.append(f"Biomes: {', '.join(BIOMES)}")
    lines.append('Numbers should be extracted from text (e.g., "three" -> 3, "a few" -> 3, "several" -> 5, "many" -> 10)')
    return "\n".join(lines)


def _context_lines(context: SessionContext) -> list[str]:
    lines: list[str] = []
    state = context.world_snapshot
    if state is not None:
        lines.append(f"- World Size: {state.world_size.width}x{state.world_size.height}")
        statuses = Counter(agent.status.value for agent in state.agents)
        breakdown = ", ".join(f"{status}: {count}" for status, count in sorted(statuses.items()))
        lines.append(f"- Active Agents: {len(state.agents)}" + (f" ({breakdown})" if breakdown else ""))
        if state.objects:
            objects = Counter(obj.type.value for obj in state.objects)
            lines.append("- World Objects: " + ", ".join(f"{kind}: {count}" for kind, count in sorted(objects.items())))
        stats = state.player_stats
        lines.append(
            f"- Player Stats: score {stats.score}, level {stats.level}, "
            f"commands executed {stats.commands_executed}, agents deployed {stats.agents_deployed}"
        )

    if context.recent_commands:
        lines.append(f"- Recent Commands: {', '.join(context.recent_commands[-RECENT_COMMAND_LIMIT:])}")

    challenge = context.active_challenge
    if challenge is not None:
        lines.append(f"- Active Challenge: {challenge.title}")
        for objective in challenge.objectives:
            marker = "x" if objective.completed else " "
            lines.append(f"  [{marker}] {objective.description} ({objective.progress}/{objective.max_progress})")

    agent = context.selected_agent
    if agent is not None:
        lines.append(
            f"- Selected Agent: {agent.name} ({agent.id}) at ({agent.position.x}, {agent.position.y}), "
            f"behavior {agent.behavior}, status {agent.status.value}, health {agent.health}, energy {agent.energy}"
        )

    if context.world_events:
        recent = context.world_events[-RECENT_EVENT_LIMIT:]
        lines.append(f"- Recent Events: {', '.join(event.type.value for event in recent)}")

    return lines
