"""Per-invocation run context built from the GitHub Actions environment."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .config import DEFAULT_WORKSPACE, AppConfig

OPERATIONS = ("build", "deploy", "release")


@dataclass(frozen=True)
class RepoCoordinates:
    owner: str
    name: str

    @classmethod
    def parse(cls, full_name: str) -> "RepoCoordinates":
        owner, sep, name = full_name.partition("/")
        if not sep or not owner or not name:
            raise ValueError(f"Invalid repository name: {full_name!r} (expected owner/name)")
        return cls(owner=owner, name=name)

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class RunContext:
    """Read-only view of a single run.

    `commit_sha` is the commit statuses and deployments are attached to;
    `after_sha` is the push event's "after" commit, used for labels.
    """

    workspace: str
    operation: str
    commit_sha: str
    repo: RepoCoordinates
    ref: str
    run_id: str
    tool_address: str
    tool_token: str
    after_sha: str
    event_name: str = "push"
    ui_base_url: Optional[str] = None
    project: Optional[str] = None
    app: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.workspace:
            object.__setattr__(self, "workspace", DEFAULT_WORKSPACE)

    @property
    def ui_url(self) -> Optional[str]:
        """Deep link into the Waypoint UI for this app, when resolvable."""
        if not (self.ui_base_url and self.project and self.app):
            return None
        return f"{self.ui_base_url.rstrip('/')}/default/{self.project}/app/{self.app}"

    @classmethod
    def from_environment(
        cls,
        config: AppConfig,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "RunContext":
        env = os.environ if environ is None else environ

        missing = []
        for name in ("GITHUB_REPOSITORY", "GITHUB_SHA", "GITHUB_REF", "GITHUB_RUN_ID"):
            if not env.get(name):
                missing.append(name)
        if not config.deploy.operation:
            missing.append("operation")
        if not config.waypoint.server_address:
            missing.append("waypoint_server_address")
        if not config.waypoint.server_token:
            missing.append("waypoint_server_token")
        if missing:
            raise ValueError("Missing run context values: " + ", ".join(missing))

        operation = config.deploy.operation.lower()
        if operation not in OPERATIONS:
            raise ValueError(
                f"Unsupported operation {operation!r}; expected one of {', '.join(OPERATIONS)}"
            )

        payload = load_event_payload(env.get("GITHUB_EVENT_PATH"))
        sha = env["GITHUB_SHA"]

        return cls(
            workspace=config.deploy.workspace or DEFAULT_WORKSPACE,
            operation=operation,
            commit_sha=sha,
            repo=RepoCoordinates.parse(env["GITHUB_REPOSITORY"]),
            ref=env["GITHUB_REF"],
            run_id=env["GITHUB_RUN_ID"],
            tool_address=config.waypoint.server_address,
            tool_token=config.waypoint.server_token,
            after_sha=payload.get("after") or sha,
            event_name=env.get("GITHUB_EVENT_NAME", "push"),
            ui_base_url=config.waypoint.ui_base_url,
            project=config.waypoint.project,
            app=config.waypoint.app,
        )


def load_event_payload(path: Optional[str]) -> Dict[str, Any]:
    """Read the webhook payload GitHub Actions writes to GITHUB_EVENT_PATH."""
    if not path:
        return {}
    event_file = Path(path)
    if not event_file.is_file():
        return {}
    return json.loads(event_file.read_text(encoding="utf-8"))
