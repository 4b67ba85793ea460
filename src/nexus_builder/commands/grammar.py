"""Per-command micro-grammars that extract raw arguments from a command string.

Each grammar receives the text following the command-name token and returns
the arguments it found (``None`` for omitted optional slots). Grammars only
check structure; value checks against the world happen in the validator.
"""

from __future__ import annotations

import re
import shlex
from typing import Any, Callable

from nexus_builder.commands.catalog import CommandSpec, ParameterSpec, ParameterType

_HEAD_RE = re.compile(r"[^\[\s]+")
_DEPLOY_RE = re.compile(
    r"\[\s*(-?\d+)\s*\]"
    r"(?:\s+(?:(-?\d+)\s+(-?\d+)|([A-Za-z]\w*)))?"
    r"(?:\s+([A-Za-z]\w*))?"
)
_SCAN_RE = re.compile(r"(-?\d+)\s+(-?\d+)(?:\s+(-?\d+))?")
_INT_RE = re.compile(r"-?\d+")
_TRUE_TOKENS = {"true", "yes", "on", "1"}
_FALSE_TOKENS = {"false", "no", "off", "0"}


class GrammarError(ValueError):
    """Raised when a command string does not fit its command's grammar."""


Grammar = Callable[[str, CommandSpec], dict[str, Any]]


def split_head(command: str) -> tuple[str, str]:
    """Split ``command`` into the leading name token and the remaining text."""
    text = command.strip()
    match = _HEAD_RE.match(text)
    if not match:
        return "", text
    return match.group(0), text[match.end() :]


def parse_deploy_agent(rest: str, spec: CommandSpec) -> dict[str, Any]:
    match = _DEPLOY_RE.fullmatch(rest.strip())
    if not match:
        raise GrammarError(f"Invalid DeployAgent syntax. Use: {spec.syntax}")

    count, x, y, location, behavior = match.groups()
    arguments: dict[str, Any] = {"count": int(count), "location": location, "behavior": behavior}
    if x is not None:
        arguments["location"] = f"{x} {y}"
        arguments["x"] = int(x)
        arguments["y"] = int(y)
    return arguments


def parse_scan_area(rest: str, spec: CommandSpec) -> dict[str, Any]:
    match = _SCAN_RE.fullmatch(rest.strip())
    if not match:
        raise GrammarError(f"Invalid ScanArea syntax. Use: {spec.syntax}")

    x, y, radius = match.groups()
    return {"x": int(x), "y": int(y), "radius": int(radius) if radius is not None else None}


def parse_generate_world(rest: str, spec: CommandSpec) -> dict[str, Any]:
    try:
        tokens = shlex.split(rest)
    except ValueError as exc:
        raise GrammarError(f"Invalid GenerateWorld syntax ({exc}). Use: {spec.syntax}") from exc

    if not 1 <= len(tokens) <= 3:
        raise GrammarError(f"Invalid GenerateWorld syntax. Use: {spec.syntax}")

    seed = tokens[0]
    biome = tokens[1] if len(tokens) > 1 else None
    difficulty = None
    if len(tokens) > 2:
        if not _INT_RE.fullmatch(tokens[2]):
            raise GrammarError(f"Difficulty must be an integer, got {tokens[2]!r}. Use: {spec.syntax}")
        difficulty = int(tokens[2])
    return {"seed": seed, "biome": biome, "difficulty": difficulty}


def parse_no_arguments(rest: str, spec: CommandSpec) -> dict[str, Any]:
    if rest.strip():
        raise GrammarError(f"{spec.name} does not accept arguments")
    return {}


def parse_generic(rest: str, spec: CommandSpec) -> dict[str, Any]:
    """Assign bracketed then whitespace-separated values to ``spec.parameters`` in order."""
    text = rest.strip()
    values: list[str] = []

    if text.startswith("["):
        close = text.find("]")
        if close < 0:
            raise GrammarError(f"Unclosed bracket in {spec.name} arguments. Use: {spec.syntax}")
        values.extend(item.strip() for item in text[1:close].split(",") if item.strip())
        text = text[close + 1 :]
    elif "]" in text:
        raise GrammarError(f"Unexpected ']' in {spec.name} arguments. Use: {spec.syntax}")

    try:
        values.extend(shlex.split(text))
    except ValueError as exc:
        raise GrammarError(f"Malformed arguments for {spec.name}: {exc}") from exc

    if len(values) > len(spec.parameters):
        raise GrammarError(
            f"{spec.name} takes at most {len(spec.parameters)} argument(s), got {len(values)}. Use: {spec.syntax}"
        )

    arguments = {param.name: coerce_value(param, raw) for param, raw in zip(spec.parameters, values)}
    missing = [param.name for param in spec.parameters[len(values) :] if param.required]
    if missing:
        raise GrammarError(f"Missing required parameter(s) for {spec.name}: {', '.join(missing)}")
    return arguments


def coerce_value(param: ParameterSpec, raw: str) -> Any:
    if param.type == ParameterType.NUMBER:
        try:
            return int(raw) if _INT_RE.fullmatch(raw) else float(raw)
        except ValueError as exc:
            raise GrammarError(f"Parameter {param.name} expects a number, got {raw!r}") from exc

    if param.type == ParameterType.BOOLEAN:
        lowered = raw.lower()
        if lowered in _TRUE_TOKENS:
            return True
        if lowered in _FALSE_TOKENS:
            return False
        raise GrammarError(f"Parameter {param.name} expects true or false, got {raw!r}")

    if param.type == ParameterType.ARRAY:
        return [item.strip() for item in raw.split(",") if item.strip()]

    return raw


GRAMMARS: dict[str, Grammar] = {
    "deployagent": parse_deploy_agent,
    "scanarea": parse_scan_area,
    "generateworld": parse_generate_world,
    "listagents": parse_no_arguments,
    "status": parse_no_arguments,
    "clearterminal": parse_no_arguments,
    "help": parse_no_arguments,
    "tutorial": parse_no_arguments,
}


def grammar_for(spec: CommandSpec) -> Grammar:
    if spec.is_custom:
        return parse_generic
    return GRAMMARS.get(spec.key, parse_generic)
