"""Contracts shared between the API service, the engine and the CLI."""

from .events import EngagementEvent

__all__ = ["EngagementEvent"]
