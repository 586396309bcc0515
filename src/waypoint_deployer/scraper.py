"""Extraction of structured values from Waypoint's console output."""

from __future__ import annotations

import re
from typing import Optional

# `waypoint deploy` prints this marker followed by the public URL of the
# new deployment. Treat the exact text as part of the CLI contract.
DEPLOY_URL_MARKER = "Deployment URL: "

_DEPLOY_URL_PATTERN = re.compile(rf"^\s*{re.escape(DEPLOY_URL_MARKER)}(\S.*?)\s*$", re.MULTILINE)


def extract_deploy_url(stdout: str) -> Optional[str]:
    """Return the deployment URL, or None unless exactly one marker line is present."""
    if not stdout:
        return None
    matches = _DEPLOY_URL_PATTERN.findall(stdout)
    if len(matches) != 1:
        return None
    return matches[0]
