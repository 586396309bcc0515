"""Command-line interface for Waypoint Deployer."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .config import AppConfig, load_config
from .context import OPERATIONS, RunContext
from .github import GitHubClient, StatusReporter
from .labels import build_labels
from .orchestrator import StageOrchestrator
from .tooling import ToolEnvironment, WaypointRunner
from .utils.logging import get_logger, mask_secret

logger = get_logger(__name__)


@dataclass
class CLIContext:
    """Context captured from CLI arguments."""

    config: AppConfig
    run: RunContext


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="waypoint-deployer",
        description="Run a Waypoint build, deploy or release for a push and report it to GitHub.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON config file overriding defaults.",
    )
    parser.add_argument(
        "--operation",
        choices=OPERATIONS,
        default=None,
        help="Stage to run (default: INPUT_OPERATION).",
    )
    parser.add_argument(
        "--workspace",
        type=str,
        default=None,
        help="Waypoint workspace (default: INPUT_WORKSPACE or 'default').",
    )
    parser.add_argument(
        "--event-path",
        type=str,
        default=None,
        help="Path to the push event payload (default: GITHUB_EVENT_PATH).",
    )
    parser.add_argument(
        "--propagation-delay",
        type=float,
        default=None,
        help="Seconds to wait for the build artifact before deploying.",
    )
    parser.add_argument(
        "--skip-validate",
        action="store_true",
        help="Do not check the Waypoint installation before running.",
    )
    return parser


def _build_context(args: argparse.Namespace, environ: Mapping[str, str]) -> CLIContext:
    config = load_config(args.config, env=environ)
    if args.operation:
        config.deploy.operation = args.operation
    if args.workspace:
        config.deploy.workspace = args.workspace
    if args.propagation_delay is not None:
        config.deploy.propagation_delay = args.propagation_delay

    env = dict(environ)
    if args.event_path:
        env["GITHUB_EVENT_PATH"] = args.event_path

    # Mask before anything can log them
    mask_secret(config.github.token)
    mask_secret(config.waypoint.server_token)

    return CLIContext(config=config, run=RunContext.from_environment(config, env))


def dispatch_command(args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None) -> int:
    context = _build_context(args, os.environ if environ is None else environ)
    config = context.config
    ctx = context.run

    if ctx.event_name != "push":
        logger.info("Ignoring %s event; only push events are handled", ctx.event_name)
        return 0

    if not config.github.token:
        raise ValueError("Missing GitHub token (set GITHUB_TOKEN or the github_token input)")

    runner = WaypointRunner(
        ToolEnvironment(
            server_address=ctx.tool_address,
            server_token=ctx.tool_token,
            tls=config.waypoint.tls,
            tls_skip_verify=config.waypoint.tls_skip_verify,
        ),
        binary=config.waypoint.binary,
    )
    if not args.skip_validate:
        runner.validate_installation()
    if config.waypoint.create_context:
        runner.create_context()

    client = GitHubClient(
        config.github.token,
        api_url=config.github.api_url,
        timeout=config.github.timeout,
    )
    labels = build_labels(ctx, client)
    orchestrator = StageOrchestrator(
        ctx,
        runner,
        StatusReporter(client),
        labels,
        propagation_delay=config.deploy.propagation_delay,
    )
    orchestrator.run()
    logger.info("%s completed successfully", ctx.operation)
    return 0


def run_cli(argv: Optional[list[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return dispatch_command(args, environ)
    except Exception as exc:
        logger.error("Run failed: %s", exc)
        return 1
