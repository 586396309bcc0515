"""Minimal GitHub REST client for commit lookups, statuses and deployments."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub API request fails (network, auth, rate limit, ...)."""

    def __init__(self, method: str, path: str, message: str, status_code: Optional[int] = None) -> None:
        self.method = method
        self.path = path
        self.status_code = status_code
        prefix = f"GitHub API {method} {path} failed"
        if status_code is not None:
            prefix += f" with status {status_code}"
        super().__init__(f"{prefix}: {message}")


class GitHubClient:
    """Thin wrapper around the GitHub REST API.

    Requests are never retried here; every failure surfaces immediately as a
    GitHubAPIError.
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )

    def get_commit(self, owner: str, repo: str, ref: str) -> Dict[str, Any]:
        return self._request("GET", f"/repos/{owner}/{repo}/commits/{ref}")

    def create_status(
        self,
        owner: str,
        repo: str,
        sha: str,
        *,
        state: str,
        context: str,
        description: str,
        target_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"state": state, "context": context, "description": description}
        if target_url:
            body["target_url"] = target_url
        return self._request("POST", f"/repos/{owner}/{repo}/statuses/{sha}", body)

    def create_deployment(
        self,
        owner: str,
        repo: str,
        *,
        ref: str,
        environment: str,
        description: Optional[str] = None,
        required_contexts: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "ref": ref,
            "environment": environment,
            "auto_merge": False,
            "required_contexts": required_contexts or [],
        }
        if description:
            body["description"] = description
        return self._request("POST", f"/repos/{owner}/{repo}/deployments", body)

    def create_deployment_status(
        self,
        owner: str,
        repo: str,
        deployment_id: int,
        *,
        state: str,
        target_url: Optional[str] = None,
        environment_url: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"state": state}
        if target_url:
            body["target_url"] = target_url
        if environment_url:
            body["environment_url"] = environment_url
        if description:
            body["description"] = description
        return self._request(
            "POST", f"/repos/{owner}/{repo}/deployments/{deployment_id}/statuses", body
        )

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.api_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise GitHubAPIError(method, path, str(exc)) from exc

        if response.status_code >= 400:
            detail = response.text[:500]
            try:
                payload = response.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict) and payload.get("message"):
                detail = payload["message"]
            raise GitHubAPIError(method, path, detail, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubAPIError(
                method, path, f"response is not valid JSON: {exc}", status_code=response.status_code
            ) from exc
