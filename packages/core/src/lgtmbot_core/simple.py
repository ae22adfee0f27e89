"""Simple review mode: any single collaborator (or OWNERS reviewer) toggles lgtm."""

from __future__ import annotations

import logging

from github import GithubException

from lgtmbot_core.commands import Command, CommentEvent
from lgtmbot_core.consensus import SELF_APPROVAL_RESPONSE
from lgtmbot_core.gh.pull_request import (
    assign,
    create_comment,
    format_reply,
    get_changed_files,
    has_label,
    is_collaborator,
    list_comments,
    prune_comments,
)
from lgtmbot_core.labels import LabelAction, apply_label
from lgtmbot_core.staleness import (
    REMOVE_LABEL_NOTIFICATION,
    head_tree_hash,
    is_marker_comment,
    is_removal_notice,
    is_stale,
    last_marker_tree_hash,
    marker_comment,
)
from lgtmbot_core.state import normalize_login

logger = logging.getLogger(__name__)

COLLABORATORS_ONLY_RESPONSE = "changing LGTM is restricted to collaborators"
OWNERS_ONLY_RESPONSE = "adding LGTM is restricted to approvers and reviewers in OWNERS files."


def load_reviewers(owners, filenames) -> set[str]:
    """Everyone OWNERS lists as approver or reviewer of any of ``filenames``."""
    reviewers: set[str] = set()
    for name in filenames:
        reviewers |= owners.approvers(name) | owners.reviewers(name)
    return reviewers


def _reply(pr, event: CommentEvent, response: str) -> None:
    logger.info('Reply to %s with comment: "%s"', event.commenter, response)
    create_comment(pr, format_reply(event.commenter, event.body, event.html_url, response))


def handle_simple_comment(
    repo,
    pr,
    owners,
    bot_login: str,
    event: CommentEvent,
    settings: dict,
    is_trusted_author,
) -> LabelAction | None:
    """Toggle the label for one /lgtm or /lgtm cancel comment.

    Returns the label change made, or None when the commenter was refused.
    """
    label = settings["label"]
    want_lgtm = event.command is Command.APPROVE
    commenter = event.commenter
    is_author = normalize_login(commenter) == normalize_login(pr.user.login)

    if is_author and want_lgtm:
        _reply(pr, event, SELF_APPROVAL_RESPONSE)
        return None

    skip_collaborators = settings["skip_collaborators"]
    if not is_author and not skip_collaborators and not is_collaborator(repo, commenter):
        _reply(pr, event, COLLABORATORS_ONLY_RESPONSE)
        return None

    is_assignee = any(a.login == commenter for a in pr.assignees)
    if not is_author and not is_assignee and not skip_collaborators:
        logger.info("Assigning #%s to %s", pr.number, commenter)
        try:
            assign(pr, commenter)
        except GithubException as e:
            logger.error("Failed to assign #%s to %s: %s", pr.number, commenter, e)
    elif not is_author and skip_collaborators:
        if normalize_login(commenter) not in load_reviewers(owners, get_changed_files(pr)):
            _reply(pr, event, OWNERS_ONLY_RESPONSE)
            return None

    labelled = has_label(pr, label)

    if labelled and not want_lgtm:
        apply_label(pr, label, LabelAction.REMOVE)
        if settings["store_tree_hash"]:
            prune_comments(pr, bot_login, is_marker_comment)
        return LabelAction.REMOVE

    if not labelled and want_lgtm:
        apply_label(pr, label, LabelAction.ADD)
        if not is_trusted_author(pr.user.login):
            if settings["store_tree_hash"]:
                tree_hash = head_tree_hash(repo, pr)
                logger.info("Adding comment to store tree-hash %s", tree_hash)
                create_comment(pr, marker_comment(tree_hash))
            prune_comments(pr, bot_login, is_removal_notice)
        return LabelAction.ADD

    return LabelAction.KEEP


def handle_simple_pr_event(repo, pr, bot_login: str, action: str, settings: dict, is_trusted_author) -> LabelAction | None:
    """Drop the label when new commits change the PR's tree.

    Returns None when nothing was written.
    """
    label = settings["label"]
    if pr.merged or action != "synchronize":
        return None

    if is_trusted_author(pr.user.login):
        logger.info("%s is trusted with sticky LGTM; skipping tree-hash check", pr.user.login)
        return None

    if not has_label(pr, label):
        return None

    if settings["store_tree_hash"]:
        recorded = last_marker_tree_hash(list_comments(pr), bot_login)
        if recorded is not None:
            current = head_tree_hash(repo, pr)
            if not is_stale(recorded, current):
                logger.info("Keeping LGTM label as the tree-hash remained the same: %s", current)
                return None

    apply_label(pr, label, LabelAction.REMOVE)
    logger.info("Commenting with an LGTM removed notification to #%s", pr.number)
    create_comment(pr, REMOVE_LABEL_NOTIFICATION)
    return LabelAction.REMOVE
