"""Command catalog, grammar and validation."""

from .catalog import BUILTIN_COMMANDS, CommandCatalog, CommandCategory, CommandSpec, ParameterSpec, ParameterType
from .grammar import GrammarError
from .results import ParsedIntent, ValidationResult
from .validator import CommandValidator

__all__ = [
    "BUILTIN_COMMANDS",
    "CommandCatalog",
    "CommandCategory",
    "CommandSpec",
    "CommandValidator",
    "GrammarError",
    "ParameterSpec",
    "ParameterType",
    "ParsedIntent",
    "ValidationResult",
]
