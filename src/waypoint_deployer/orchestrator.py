"""Stage pipeline: init, then one of build / deploy / release.

Each stage is a single Waypoint invocation. Progress is mirrored to GitHub:
a commit status per operation for every stage, plus a deployment record
with its own status timeline for the deploy stage.

Failure rule: once the pending commit status has been posted, any failure
(init included) is reported as an error status for the current operation
before the run fails. If reporting that error fails too, the reporting
error is logged and attached to the original failure, which is what gets
raised.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable, Dict, List, Optional

from .context import RunContext
from .github.reporter import (
    CommitState,
    DeploymentRecord,
    DeploymentState,
    StatusReporter,
    deployment_state_for,
)
from .labels import LabelSet, label_args
from .scraper import extract_deploy_url
from .tooling.runner import ProcessResult, WaypointRunner
from .utils.logging import get_logger

logger = get_logger(__name__)


class RunState(Enum):
    """Orchestrator state"""
    NOT_STARTED = "not_started"
    INIT = "init"
    BUILD = "build"
    DEPLOY = "deploy"
    RELEASE = "release"
    DONE = "done"
    ERRORED = "errored"


class StageFailedError(RuntimeError):
    """A stage failed; the run is over.

    `exit_code` is set when the failure was a non-zero exit of the Waypoint
    subprocess. `report_errors` holds any errors raised while trying to
    report the failure to GitHub.
    """

    def __init__(self, stage: str, message: Optional[str] = None, exit_code: Optional[int] = None) -> None:
        self.stage = stage
        self.exit_code = exit_code
        self.report_errors: List[BaseException] = []
        if message is None:
            message = f"{stage} failed with exit code {exit_code}"
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.report_errors:
            details = "; ".join(str(exc) for exc in self.report_errors)
            message += f" (additionally, reporting the failure failed: {details})"
        return message


class StageOrchestrator:
    """Runs the stage requested by `ctx.operation` and reports its progress."""

    def __init__(
        self,
        ctx: RunContext,
        runner: WaypointRunner,
        reporter: StatusReporter,
        labels: LabelSet,
        *,
        propagation_delay: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.ctx = ctx
        self.runner = runner
        self.reporter = reporter
        self.args = label_args(ctx.workspace, labels)
        self.propagation_delay = propagation_delay
        self._sleep = sleep
        self.state = RunState.NOT_STARTED

    def run(self) -> None:
        handlers: Dict[str, Callable[[], None]] = {
            "build": self.run_build,
            "deploy": self.run_deploy,
            "release": self.run_release,
        }
        handler = handlers.get(self.ctx.operation)
        if handler is None:
            raise ValueError(f"Unsupported operation: {self.ctx.operation}")
        logger.info("Running %s for %s@%s in workspace %s",
                    self.ctx.operation, self.ctx.repo, self.ctx.commit_sha[:7], self.ctx.workspace)
        handler()

    def run_build(self) -> None:
        self._run_single_stage(RunState.BUILD, "build")

    def run_release(self) -> None:
        self._run_single_stage(RunState.RELEASE, "release")

    def run_deploy(self) -> None:
        self.reporter.report_commit_status(self.ctx, CommitState.PENDING)

        record: Optional[DeploymentRecord] = None
        tool_failed = False
        try:
            self._init()
            record = self.reporter.create_deployment(self.ctx)
            self.reporter.report_deployment_status(self.ctx, record, DeploymentState.PENDING)
            self.await_artifact_propagation()
            # init is idempotent; run it again right before the deploy
            self._init()
            result = self._invoke(RunState.DEPLOY, "deploy")
            if not result.ok:
                tool_failed = True
                raise StageFailedError("deploy", exit_code=result.exit_code)

            deploy_url = extract_deploy_url(result.stdout)
            if deploy_url:
                logger.info("Deployment URL: %s", deploy_url)
            else:
                logger.info("No deployment URL found in the deploy output")
            self.reporter.report_deployment_status(self.ctx, record, DeploymentState.SUCCESS, deploy_url)
            self.reporter.report_commit_status(self.ctx, CommitState.SUCCESS, deploy_url)
        except Exception as exc:
            raise self._failed(RunState.DEPLOY, exc, record=record, tool_failed=tool_failed)
        self.state = RunState.DONE

    def await_artifact_propagation(self) -> None:
        """Give Waypoint's backend time to expose the artifact of the last build.

        A deploy started right after a build can resolve a stale artifact and
        there is no readiness signal to wait on, so this is a fixed delay.
        """
        if self.propagation_delay <= 0:
            return
        logger.info("Waiting %.1fs for the build artifact to become available", self.propagation_delay)
        self._sleep(self.propagation_delay)

    def _run_single_stage(self, stage: RunState, subcommand: str) -> None:
        self.reporter.report_commit_status(self.ctx, CommitState.PENDING)
        try:
            self._init()
            result = self._invoke(stage, subcommand)
            if not result.ok:
                raise StageFailedError(subcommand, exit_code=result.exit_code)
            self.reporter.report_commit_status(self.ctx, CommitState.SUCCESS)
        except Exception as exc:
            raise self._failed(stage, exc)
        self.state = RunState.DONE

    def _init(self) -> None:
        self.state = RunState.INIT
        result = self.runner.invoke("init", ["-workspace", self.ctx.workspace])
        if not result.ok:
            raise StageFailedError("init", exit_code=result.exit_code)

    def _invoke(self, stage: RunState, subcommand: str) -> ProcessResult:
        self.state = stage
        return self.runner.invoke(subcommand, self.args)

    def _failed(
        self,
        stage: RunState,
        exc: Exception,
        *,
        record: Optional[DeploymentRecord] = None,
        tool_failed: bool = False,
    ) -> StageFailedError:
        """Report the error state and return the error the run should raise."""
        self.state = RunState.ERRORED
        if isinstance(exc, StageFailedError):
            error = exc
        else:
            error = StageFailedError(stage.value, f"{stage.value} failed: {exc}")
            error.__cause__ = exc
        logger.error("%s", error)

        try:
            self.reporter.report_commit_status(self.ctx, CommitState.ERROR)
        except Exception as report_exc:
            logger.error("Failed to report the error commit status: %s", report_exc)
            error.report_errors.append(report_exc)

        if record is not None:
            state = deployment_state_for(CommitState.ERROR, tool_failed=tool_failed)
            try:
                self.reporter.report_deployment_status(self.ctx, record, state)
            except Exception as report_exc:
                logger.error("Failed to report deployment %d as %s: %s", record.id, state.value, report_exc)
                error.report_errors.append(report_exc)

        return error
