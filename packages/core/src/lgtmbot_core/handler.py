"""Entry point for GitHub webhook events.

Takes the event name and JSON payload GitHub delivers (GITHUB_EVENT_NAME and
GITHUB_EVENT_PATH in Actions), picks the review mode configured for the
repository and runs it. One event is handled start to finish per call; any
GitHub API failure propagates to the caller, which owns retries.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from lgtmbot_core.commands import Command, CommentEvent, classify
from lgtmbot_core.config import config_for
from lgtmbot_core.gh.pull_request import get_bot_login, get_client, get_pull, get_repo, is_team_member
from lgtmbot_core.simple import handle_simple_comment, handle_simple_pr_event
from lgtmbot_core.strict import handle_strict_comment, handle_strict_pr_event

logger = logging.getLogger(__name__)


@dataclass
class EventSummary:
    """What one handled event did, for the CLI to report."""

    repo: str
    pr_number: int
    event: str
    mode: str  # "strict" | "simple"
    outcome: str | None = None
    label_action: str | None = None
    handled_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def sticky_check(client, org: str, team: str | None):
    """Build the is_trusted_author(login) callable for a repo's settings."""
    if not team:
        return lambda login: False
    return lambda login: is_team_member(client, org, team, login)


def _settings_for(config: dict, repository: dict) -> tuple[str, str, dict]:
    org = repository["owner"]["login"]
    name = repository["name"]
    settings = config_for(config, org, name)
    if settings is None:
        raise ValueError(f"No config for this repo: {org}/{name}")
    return org, name, settings


def handle_comment_event(payload: dict, config: dict, owners_factory, client=None) -> EventSummary | None:
    """Handle an ``issue_comment`` event; returns None when it is not for us."""
    if payload.get("action") != "created":
        logger.debug("Event is not a creation of a comment, skipping.")
        return None

    issue = payload.get("issue") or {}
    if not issue.get("pull_request") or issue.get("state") != "open":
        logger.debug("Event is not a comment on an open PR, skipping.")
        return None

    comment = payload["comment"]
    command = classify(comment.get("body"))
    if command is Command.NONE:
        return None

    org, name, settings = _settings_for(config, payload["repository"])
    client = client if client is not None else get_client(config["github_token"])
    repo = get_repo(client, f"{org}/{name}")
    pr = get_pull(repo, issue["number"])
    event = CommentEvent(
        commenter=comment["user"]["login"],
        body=comment.get("body") or "",
        html_url=comment.get("html_url") or "",
        command=command,
    )
    owners = owners_factory(repo, pr.base.ref, settings)
    summary = EventSummary(
        repo=f"{org}/{name}",
        pr_number=pr.number,
        event="issue_comment",
        mode="strict" if settings["strict_review"] else "simple",
    )

    try:
        bot_login = get_bot_login(client, config.get("bot_login"))
        if settings["strict_review"]:
            decision = handle_strict_comment(repo, pr, owners, bot_login, event, settings["label"])
            summary.outcome = decision.outcome.value
        else:
            trusted = sticky_check(client, org, settings["trusted_team_for_sticky_lgtm"])
            action = handle_simple_comment(repo, pr, owners, bot_login, event, settings, trusted)
            summary.outcome = "refused" if action is None else "handled"
            summary.label_action = action.value if action is not None else None
    finally:
        owners.close()
    return summary


def handle_pull_request_event(payload: dict, config: dict, client=None) -> EventSummary | None:
    """Handle a ``pull_request`` event; returns None when it is not for us."""
    pull = payload.get("pull_request") or {}
    if pull.get("state") != "open":
        logger.debug("Pull request state is not open, skipping...")
        return None

    org, name, settings = _settings_for(config, payload["repository"])
    client = client if client is not None else get_client(config["github_token"])
    repo = get_repo(client, f"{org}/{name}")
    pr = get_pull(repo, pull["number"])
    action = payload.get("action", "")
    bot_login = get_bot_login(client, config.get("bot_login"))

    if settings["strict_review"]:
        label_action = handle_strict_pr_event(repo, pr, bot_login, action, settings["label"])
    else:
        trusted = sticky_check(client, org, settings["trusted_team_for_sticky_lgtm"])
        label_action = handle_simple_pr_event(repo, pr, bot_login, action, settings, trusted)

    return EventSummary(
        repo=f"{org}/{name}",
        pr_number=pr.number,
        event="pull_request",
        mode="strict" if settings["strict_review"] else "simple",
        outcome=action,
        label_action=label_action.value if label_action is not None else None,
    )


def handle_event(event_name: str, payload: dict, config: dict, owners_factory, client=None) -> EventSummary | None:
    """Dispatch one webhook event. Unknown event types are ignored."""
    started = time.monotonic()
    try:
        if event_name == "issue_comment":
            return handle_comment_event(payload, config, owners_factory, client)
        if event_name == "pull_request":
            return handle_pull_request_event(payload, config, client)
        logger.debug("Ignoring %s event", event_name)
        return None
    finally:
        logger.debug("Completed %s event in %.2fs", event_name, time.monotonic() - started)
