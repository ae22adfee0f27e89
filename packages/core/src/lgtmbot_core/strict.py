"""Strict review mode: per-directory OWNERS coverage decides the lgtm label."""

from __future__ import annotations

import logging

from lgtmbot_core.commands import Command, CommentEvent
from lgtmbot_core.consensus import ConsensusEngine, Decision, Outcome
from lgtmbot_core.gh.pull_request import create_comment, format_reply, get_changed_files, has_label
from lgtmbot_core.labels import LabelAction, apply_label, plan_label, sync, write_status
from lgtmbot_core.staleness import head_tree_hash, load_state
from lgtmbot_core.state import fresh_state

logger = logging.getLogger(__name__)


def file_reviewers(filenames: list[str], owners) -> dict[str, frozenset[str]]:
    """Map each changed file to everyone OWNERS allows to review it."""
    return {name: frozenset(owners.approvers(name) | owners.reviewers(name)) for name in filenames}


def handle_strict_comment(repo, pr, owners, bot_login: str, event: CommentEvent, label: str) -> Decision:
    """Apply one /lgtm or /lgtm cancel comment to the PR's consensus.

    Everything is read before anything is written: changed files, OWNERS and
    the label all have to load for the event to go ahead.
    """
    tree_hash = head_tree_hash(repo, pr)
    filenames = get_changed_files(pr)
    loaded = load_state(pr, bot_login, tree_hash, filenames)
    path_reviewers = file_reviewers(filenames, owners)
    labelled = has_label(pr, label)

    engine = ConsensusEngine(loaded.state, path_reviewers, pr.user.login, labelled)
    if event.command is Command.APPROVE:
        decision = engine.approve(event.commenter)
    else:
        decision = engine.cancel(event.commenter)

    if decision.outcome is Outcome.REFUSED:
        logger.info('Commenting with "%s".', decision.response)
        create_comment(pr, format_reply(event.commenter, event.body, event.html_url, decision.response))
    elif decision.outcome is Outcome.RECORDED:
        write_status(pr, engine.state, decision.verdict)
    elif decision.outcome is Outcome.CONVERGE:
        sync(pr, engine.state, decision.verdict, labelled, label)
    return decision


def handle_strict_pr_event(repo, pr, bot_login: str, action: str, label: str) -> LabelAction | None:
    """React to a PR being opened or receiving new commits.

    Returns None when the event needed no write.
    """
    if action not in ("opened", "synchronize"):
        logger.debug("Ignoring pull_request action %r", action)
        return None

    tree_hash = head_tree_hash(repo, pr)
    if action == "opened":
        state = fresh_state(tree_hash, get_changed_files(pr))
        write_status(pr, state, False)
        return LabelAction.KEEP

    loaded = load_state(pr, bot_login, tree_hash)
    if not loaded.changed:
        logger.info("Tree hash of #%s unchanged; keeping consensus", pr.number)
        return None

    write_status(pr, loaded.state, False)
    action_taken = plan_label(False, has_label(pr, label))
    apply_label(pr, label, action_taken)
    return action_taken
