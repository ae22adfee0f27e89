"""GitHub token fallback to the gh CLI session.

load_config() already reads LGTMBOT_GITHUB_TOKEN and GITHUB_TOKEN; this covers
running `lgtmbot status` locally where neither is set.

The bot recognises its own status comments by author, so the token used to
write them must be the one used on every later event.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return the token of the active `gh auth` session, or None.

    Never raises; callers should check for None and emit a UsageError.
    """
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None

    gh_token = result.stdout.strip() if result.returncode == 0 else ""
    if not gh_token:
        return None
    logger.debug("Resolved GitHub token via gh CLI session.")
    return gh_token
