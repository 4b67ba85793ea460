"""Nexus World Builder: seeded worlds, validated commands and natural-language command resolution."""

__version__ = "0.1.0"
