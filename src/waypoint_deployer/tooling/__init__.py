"""Waypoint CLI execution helpers."""

from .runner import (
    ProcessResult,
    ToolCommandError,
    ToolEnvironment,
    ToolNotFoundError,
    WaypointRunner,
)

__all__ = [
    "ProcessResult",
    "ToolCommandError",
    "ToolEnvironment",
    "ToolNotFoundError",
    "WaypointRunner",
]
