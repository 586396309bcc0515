"""Configuration loading utilities for Waypoint Deployer."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

_DEFAULT_CONFIG_PATH = Path("config/default_config.json")

DEFAULT_WORKSPACE = "default"
DEFAULT_PROPAGATION_DELAY = 30.0


@dataclass
class GitHubConfig:
    """Settings for the GitHub REST API."""

    token: Optional[str] = None
    api_url: str = "https://api.github.com"
    timeout: int = 30


@dataclass
class WaypointConfig:
    """Connection settings for the Waypoint CLI and server."""

    binary: str = "waypoint"
    server_address: Optional[str] = None
    server_token: Optional[str] = None
    tls: bool = True
    tls_skip_verify: bool = True
    ui_base_url: Optional[str] = None
    project: Optional[str] = None
    app: Optional[str] = None
    create_context: bool = False


@dataclass
class DeployConfig:
    """Settings for the stage pipeline."""

    workspace: str = DEFAULT_WORKSPACE
    operation: Optional[str] = None
    # Seconds to wait between a build and the deploy that consumes it
    propagation_delay: float = DEFAULT_PROPAGATION_DELAY


@dataclass
class AppConfig:
    """Top-level configuration."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    waypoint: WaypointConfig = field(default_factory=WaypointConfig)
    deploy: DeployConfig = field(default_factory=DeployConfig)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        github_payload = _strip_comments(payload.get("github", {}) or {})
        waypoint_payload = _strip_comments(payload.get("waypoint", {}) or {})
        deploy_payload = _strip_comments(payload.get("deploy", {}) or {})

        return cls(
            github=GitHubConfig(**{**GitHubConfig().__dict__, **github_payload}),
            waypoint=WaypointConfig(**{**WaypointConfig().__dict__, **waypoint_payload}),
            deploy=DeployConfig(**{**DeployConfig().__dict__, **deploy_payload}),
        )


def _strip_comments(section: Dict[str, Any]) -> Dict[str, Any]:
    # 以下划线开头的字段是注释
    return {k: v for k, v in section.items() if not k.startswith("_")}


def _first_env(env: Mapping[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = env.get(name)
        if value:
            return value
    return None


def apply_env_overrides(config: AppConfig, env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Overlay environment variables (and GitHub Actions inputs) onto `config`."""
    env = os.environ if env is None else env

    token = _first_env(env, "INPUT_GITHUB_TOKEN", "GITHUB_TOKEN")
    if token:
        config.github.token = token
    api_url = env.get("GITHUB_API_URL")
    if api_url:
        config.github.api_url = api_url.rstrip("/")

    # The server env vars win over action inputs, same as the waypoint CLI itself
    address = _first_env(env, "WAYPOINT_SERVER_ADDR", "INPUT_WAYPOINT_SERVER_ADDRESS")
    if address:
        config.waypoint.server_address = address
    server_token = _first_env(env, "WAYPOINT_SERVER_TOKEN", "INPUT_WAYPOINT_SERVER_TOKEN")
    if server_token:
        config.waypoint.server_token = server_token

    ui_base_url = _first_env(env, "WAYPOINT_UI_BASE_URL", "INPUT_WAYPOINT_UI_URL")
    if ui_base_url:
        config.waypoint.ui_base_url = ui_base_url.rstrip("/")
    project = _first_env(env, "WAYPOINT_PROJECT", "INPUT_PROJECT")
    if project:
        config.waypoint.project = project
    app = _first_env(env, "WAYPOINT_APP", "INPUT_APP")
    if app:
        config.waypoint.app = app

    workspace = env.get("INPUT_WORKSPACE")
    if workspace:
        config.deploy.workspace = workspace
    operation = env.get("INPUT_OPERATION")
    if operation:
        config.deploy.operation = operation
    delay = env.get("WAYPOINT_DEPLOYER_PROPAGATION_DELAY")
    if delay:
        config.deploy.propagation_delay = float(delay)

    return config


def load_config(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Load configuration from `path` or the default location.

    Environment variables (higher priority than config file):
    - GITHUB_TOKEN or INPUT_GITHUB_TOKEN: token for the GitHub API
    - GITHUB_API_URL: GitHub API base URL (GitHub Enterprise)
    - WAYPOINT_SERVER_ADDR or INPUT_WAYPOINT_SERVER_ADDRESS: Waypoint server
    - WAYPOINT_SERVER_TOKEN or INPUT_WAYPOINT_SERVER_TOKEN: Waypoint auth token
    - WAYPOINT_UI_BASE_URL, WAYPOINT_PROJECT, WAYPOINT_APP: UI deep links
    - INPUT_WORKSPACE, INPUT_OPERATION: pipeline selection
    - WAYPOINT_DEPLOYER_PROPAGATION_DELAY: post-build wait in seconds
    """
    if path:
        candidate = Path(path)
        if not candidate.is_file():
            raise FileNotFoundError(f"Could not find configuration file: {candidate}")
    else:
        candidate = _DEFAULT_CONFIG_PATH

    config = AppConfig()
    if candidate.is_file():
        with candidate.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        config = AppConfig.from_dict(data)

    config = apply_env_overrides(config, env)
    if not config.deploy.workspace:
        config.deploy.workspace = DEFAULT_WORKSPACE
    return config
