"""Drive Waypoint from a push event and mirror its progress to GitHub."""

from .context import RepoCoordinates, RunContext
from .orchestrator import RunState, StageFailedError, StageOrchestrator

__all__ = [
    "RepoCoordinates",
    "RunContext",
    "RunState",
    "StageFailedError",
    "StageOrchestrator",
]

__version__ = "0.1.0"
