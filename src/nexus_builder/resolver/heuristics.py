"""Deterministic keyword heuristics used when the language model is unavailable."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from nexus_builder.models import Size
from nexus_builder.vocabulary import BEHAVIORS, DEFAULT_BEHAVIOR, DEFAULT_LOCATION, LOCATIONS, location_anchor

HEURISTIC_CONFIDENCE = 0.7
DEFAULT_COORDINATE = 25
DEFAULT_RADIUS = 5


@dataclass(frozen=True, slots=True)
class CommandMapping:
    keywords: tuple[str, ...]
    template: str


COMMAND_MAPPINGS: tuple[CommandMapping, ...] = (
    CommandMapping(("deploy", "create", "spawn", "send"), "DeployAgent[{count}] {location} {behavior}"),
    CommandMapping(("scan", "search", "look", "check"), "ScanArea {x} {y} {radius}"),
    CommandMapping(("list", "show", "display"), "ListAgents"),
    CommandMapping(("status", "info", "stats"), "Status"),
    CommandMapping(("clear", "reset"), "ClearTerminal"),
    CommandMapping(("help",), "Help"),
)

TEXT_NUMBERS: dict[str, int] = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "a couple": 2,
    "a few": 3,
    "several": 5,
    "many": 10,
}


def _alternation(words: Iterable[str]) -> str:
    return "|".join(re.escape(word) for word in sorted(words, key=len, reverse=True))


_NUMBER_RE = re.compile(rf"\b(?:{_alternation(TEXT_NUMBERS)})\b|\d+")
_LOCATION_RE = re.compile(rf"\b({_alternation(LOCATIONS)})\b")
_BEHAVIOR_RE = re.compile(rf"\b({_alternation(BEHAVIORS)})")


@dataclass(frozen=True, slots=True)
class HeuristicMatch:
    command: str
    keyword: str
    template: str

    @property
    def explanation(self) -> str:
        return f'Matched pattern "{self.keyword}" to {self.template}'


def extract_numbers(text: str) -> list[int]:
    """Return digit and spelled-out numbers in the order they appear."""
    numbers: list[int] = []
    for match in _NUMBER_RE.finditer(text.lower()):
        token = match.group(0)
        numbers.append(int(token) if token.isdigit() else TEXT_NUMBERS[token])
    return numbers


def extract_location(text: str) -> str | None:
    match = _LOCATION_RE.search(text.lower())
    return match.group(1) if match else None


def extract_behavior(text: str) -> str | None:
    match = _BEHAVIOR_RE.search(text.lower())
    return match.group(1) if match else None


class HeuristicCommandMatcher:
    """Maps free text onto command templates by keyword, filling slots from the text."""

    def __init__(self, mappings: tuple[CommandMapping, ...] = COMMAND_MAPPINGS) -> None:
        self._mappings = mappings
        self._patterns = [
            (mapping, [(keyword, re.compile(rf"\b{re.escape(keyword)}")) for keyword in mapping.keywords])
            for mapping in mappings
        ]

    def match(self, text: str, world_size: Size | None = None) -> HeuristicMatch | None:
        lowered = " ".join(text.lower().split())
        if not lowered:
            return None

        for mapping, patterns in self._patterns:
            for keyword, pattern in patterns:
                if pattern.search(lowered):
                    command = mapping.template.format(**self._slots(lowered, world_size))
                    return HeuristicMatch(command=command, keyword=keyword, template=mapping.template)
        return None

    @staticmethod
    def _slots(text: str, world_size: Size | None) -> dict[str, object]:
        numbers = extract_numbers(text)
        location = extract_location(text)

        if world_size is not None:
            default_x, default_y = location_anchor(location or DEFAULT_LOCATION, world_size.width, world_size.height)
        else:
            default_x = default_y = DEFAULT_COORDINATE

        return {
            "count": numbers[0] if numbers else 1,
            "location": location or DEFAULT_LOCATION,
            "behavior": extract_behavior(text) or DEFAULT_BEHAVIOR,
            "x": numbers[0] if len(numbers) > 0 else default_x,
            "y": numbers[1] if len(numbers) > 1 else default_y,
            "radius": numbers[2] if len(numbers) > 2 else DEFAULT_RADIUS,
        }
