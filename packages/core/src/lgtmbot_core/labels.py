"""Make the lgtm label and the status comment agree with the consensus."""

from __future__ import annotations

import logging
from enum import Enum

from lgtmbot_core.gh.pull_request import add_label, create_comment, remove_label, update_comment
from lgtmbot_core.notification import encode
from lgtmbot_core.state import ReviewState

logger = logging.getLogger(__name__)


class LabelAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    KEEP = "keep"


def plan_label(verdict: bool, has_label: bool) -> LabelAction:
    if verdict and not has_label:
        return LabelAction.ADD
    if not verdict and has_label:
        return LabelAction.REMOVE
    return LabelAction.KEEP


def write_status(pr, state: ReviewState, verdict: bool) -> None:
    """Create or update the bot's status comment from ``state``."""
    body = encode(state, verdict)
    if state.comment_id is None:
        comment = create_comment(pr, body)
        state.comment_id = comment.id
        logger.info("Created status comment %s on #%s", comment.id, pr.number)
    else:
        update_comment(pr, state.comment_id, body)
        logger.info("Updated status comment %s on #%s", state.comment_id, pr.number)


def apply_label(pr, label: str, action: LabelAction) -> None:
    if action is LabelAction.ADD:
        logger.info("Adding %r label to #%s", label, pr.number)
        add_label(pr, label)
    elif action is LabelAction.REMOVE:
        logger.info("Removing %r label from #%s", label, pr.number)
        remove_label(pr, label)


def sync(pr, state: ReviewState, verdict: bool, has_label: bool, label: str) -> LabelAction:
    """Write the status comment, then converge the label.

    The comment goes first so a failed write never leaves a label the comment
    does not explain.
    """
    write_status(pr, state, verdict)
    action = plan_label(verdict, has_label)
    apply_label(pr, label, action)
    return action
