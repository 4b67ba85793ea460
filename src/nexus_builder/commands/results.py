"""Validation and parse outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ValidationResult:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True, slots=True)
class ParsedIntent:
    """Structured, validated command ready for execution."""

    command_name: str
    arguments: dict[str, Any] = field(default_factory=dict)
