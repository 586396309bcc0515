"""Mirrors stage outcomes onto GitHub commit statuses and deployments."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..utils.logging import get_logger
from .client import GitHubAPIError, GitHubClient

if TYPE_CHECKING:
    from ..context import RunContext

logger = get_logger(__name__)

STATUS_CONTEXT_PREFIX = "waypoint"


class CommitState(Enum):
    """Commit status states"""
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class DeploymentState(Enum):
    """Deployment status states; FAILURE is GitHub's term for a failed deploy"""
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"
    FAILURE = "failure"


_DESCRIPTIONS = {
    CommitState.PENDING: "The {operation} has started running",
    CommitState.SUCCESS: "The {operation} has completed successfully",
    CommitState.ERROR: "The {operation} encountered an error",
}


def describe(state: CommitState, operation: str) -> str:
    return _DESCRIPTIONS[state].format(operation=operation)


def status_context(operation: str) -> str:
    """Per-operation status context, so stages never overwrite each other."""
    return f"{STATUS_CONTEXT_PREFIX}/{operation}"


def deployment_state_for(state: CommitState, *, tool_failed: bool = False) -> DeploymentState:
    """Map a commit state onto the deployment status timeline.

    ERROR becomes FAILURE only when the deploy subprocess itself exited
    non-zero; errors in the surrounding orchestration stay ERROR.
    """
    if state is CommitState.ERROR and tool_failed:
        return DeploymentState.FAILURE
    return DeploymentState(state.value)


@dataclass(frozen=True)
class DeploymentRecord:
    """Handle on a GitHub deployment created for this run."""

    id: int
    environment: str


class StatusReporter:
    """Posts commit and deployment statuses for a run."""

    def __init__(self, client: GitHubClient) -> None:
        self.client = client

    def report_commit_status(
        self,
        ctx: "RunContext",
        state: CommitState,
        target_url: Optional[str] = None,
    ) -> None:
        target_url = target_url or ctx.ui_url
        description = describe(state, ctx.operation)
        logger.info("Commit status %s: %s", status_context(ctx.operation), state.value)
        self.client.create_status(
            ctx.repo.owner,
            ctx.repo.name,
            ctx.commit_sha,
            state=state.value,
            context=status_context(ctx.operation),
            description=description,
            target_url=target_url,
        )

    def create_deployment(self, ctx: "RunContext") -> DeploymentRecord:
        data = self.client.create_deployment(
            ctx.repo.owner,
            ctx.repo.name,
            ref=ctx.commit_sha,
            environment=ctx.workspace,
            description=f"Waypoint deployment to {ctx.workspace}",
        )
        if "id" not in data:
            # GitHub answers 202 with a message instead of a deployment on merge conflicts
            raise GitHubAPIError(
                "POST",
                f"/repos/{ctx.repo}/deployments",
                data.get("message", "no deployment id returned"),
            )
        record = DeploymentRecord(id=int(data["id"]), environment=ctx.workspace)
        logger.info("Created deployment %d for environment %s", record.id, record.environment)
        return record

    def report_deployment_status(
        self,
        ctx: "RunContext",
        record: DeploymentRecord,
        state: DeploymentState,
        target_url: Optional[str] = None,
    ) -> None:
        logger.info("Deployment %d status: %s", record.id, state.value)
        self.client.create_deployment_status(
            ctx.repo.owner,
            ctx.repo.name,
            record.id,
            state=state.value,
            target_url=target_url or ctx.ui_url,
            environment_url=target_url,
        )
