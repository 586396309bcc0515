"""GitHub API access and status reporting."""

from .client import GitHubAPIError, GitHubClient
from .reporter import (
    CommitState,
    DeploymentRecord,
    DeploymentState,
    StatusReporter,
    deployment_state_for,
)

__all__ = [
    "CommitState",
    "DeploymentRecord",
    "DeploymentState",
    "GitHubAPIError",
    "GitHubClient",
    "StatusReporter",
    "deployment_state_for",
]
