"""Labels that tie Waypoint artifacts back to the triggering commit."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Tuple

from .github.client import GitHubAPIError

if TYPE_CHECKING:
    from .context import RunContext
    from .github.client import GitHubClient

LABEL_PREFIX = "common"

Label = Tuple[str, str]
LabelSet = Tuple[Label, ...]


def build_labels(ctx: "RunContext", client: "GitHubClient") -> LabelSet:
    """Build the ordered label set for a run.

    Resolves the web URL of the pushed commit with one API lookup; a failed
    lookup propagates as a GitHubAPIError.
    """
    commit = client.get_commit(ctx.repo.owner, ctx.repo.name, ctx.after_sha)
    html_url = commit.get("html_url")
    if not html_url:
        raise GitHubAPIError(
            "GET",
            f"/repos/{ctx.repo}/commits/{ctx.after_sha}",
            "commit response has no html_url",
        )
    return (
        (f"{LABEL_PREFIX}/vcs-ref", ctx.ref),
        (f"{LABEL_PREFIX}/vcs-sha", ctx.after_sha),
        (f"{LABEL_PREFIX}/vcs-url", html_url),
        (f"{LABEL_PREFIX}/vcs-run-id", ctx.run_id),
    )


def label_args(workspace: str, labels: LabelSet) -> List[str]:
    """Render `-workspace W -label k=v ...` for the Waypoint CLI."""
    args = ["-workspace", workspace]
    for key, value in labels:
        args.extend(["-label", f"{key}={value}"])
    return args
