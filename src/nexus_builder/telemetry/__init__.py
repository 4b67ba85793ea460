"""Logging setup for the CLI and services."""

from .logging import configure_logging

__all__ = ["configure_logging"]
